from __future__ import annotations

"""
Main Entry Point and Global Supervisor.

Routes execution to the CLI controller and installs a global exception
hook so unexpected crashes are logged with their full trace before the
process exits.
"""

import logging
import sys
import traceback
from typing import Any

# -----------------------------------------------------------------------------
# GLOBAL SUPERVISOR (EXCEPTION HANDLING)
# -----------------------------------------------------------------------------

def global_exception_handler(exctype: type, value: BaseException, tb: Any) -> None:
    """
    Trap unhandled exceptions, log them and print the trace to stderr.

    Args:
        exctype: Exception class.
        value: Exception instance.
        tb: Traceback object.
    """
    stack_trace = "".join(traceback.format_exception(exctype, value, tb))

    logger = logging.getLogger("ragutil.supervisor")
    logger.critical(f"FATAL EXCEPTION DETECTED: {value}\n{stack_trace}")

    print("\n" + "=" * 80, file=sys.stderr)
    print("CRITICAL ERROR (RAGUTIL CLI)", file=sys.stderr)
    print("=" * 80, file=sys.stderr)
    print(stack_trace, file=sys.stderr)

# -----------------------------------------------------------------------------
# EXECUTION ROUTING
# -----------------------------------------------------------------------------

def main() -> int:
    """
    Run the CLI under the global supervisor.

    Returns:
        int: Process exit code.
    """
    sys.excepthook = global_exception_handler
    try:
        from ragutil.interface.cli.app import main as cli_main
        return cli_main()
    except Exception as e:
        global_exception_handler(type(e), e, e.__traceback__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
