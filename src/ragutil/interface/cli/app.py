from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, resolution of the
configuration hierarchy (defaults, persisted file, command-line overrides),
dispatch to the extraction services and JSON rendering of their results.
Domain failures map to exit code 1, usage problems to 2.
"""

import asyncio
import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional

from ragutil.core.extraction.delimiter import extract_blocks
from ragutil.core.extraction.dom import extract_html_blocks
from ragutil.core.extraction.tabular import extract_units, inspect_workbook
from ragutil.core.processing.ascii_filter import read_text_files
from ragutil.core.processing.formatter import build_payload, format_output, serialize_payload
from ragutil.core.processing.tokenizer import count_tokens
from ragutil.core.remote.orchestrator import (
    extract_units_via_api,
    fetch_table_from_file,
    fetch_table_from_url,
)
from ragutil.core.scanning.tree_renderer import FILE_TREE_DEPTH_LIMIT, FILE_TREE_ENTRY_LIMIT, to_ascii_tree
from ragutil.core.scanning.tree_scanner import scan_tree
from ragutil.domain.config import get_default_config, load_config
from ragutil.domain.errors import RagUtilError
from ragutil.domain.models import TabularConfig
from ragutil.domain.session import build_session, export_session, import_session, to_absolute
from ragutil.domain.validation import validate_config
from ragutil.infra.fs import read_text_lossy, save_chunk_file
from ragutil.infra.logging import LoggingConfig, configure_logging, get_default_log_path, get_logger
from ragutil.interface.cli import args as cli_args

logger = get_logger(__name__)


class UsageError(Exception):
    """Invalid invocation detected after argument parsing."""

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 success, 1 domain error, 2 usage error,
             130 interrupted).
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    if not args.command and not args.dump_config:
        parser.print_help(sys.stderr)
        return 2

    # 2. Resolve configuration (defaults, persisted state, overrides)
    base_conf = get_default_config() if args.use_defaults else load_config()
    try:
        overrides = cli_args.args_to_overrides(args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    merged = dict(base_conf)
    merged.update(overrides)
    clean_conf, warnings = validate_config(merged, strict=False)

    # 3. Logging bootstrap (console on stderr, optional rotating file)
    log_file = None
    if args.log_file is not None:
        log_file = args.log_file or get_default_log_path()
    configure_logging(LoggingConfig(level=clean_conf["log_level"], console=True, log_file=log_file))

    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        _emit(clean_conf)
        return 0

    # 4. Command execution phase
    handler = _COMMANDS[args.command]
    logger.debug(f"Running command '{args.command}'")
    try:
        result = handler(args, clean_conf)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130
    except UsageError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except RagUtilError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    # 5. Output rendering phase
    _emit(result)
    return 0

# -----------------------------------------------------------------------------
# COMMAND HANDLERS
# -----------------------------------------------------------------------------

def _cmd_scan(args, conf: Dict[str, Any]) -> Any:
    return scan_tree(args.root).to_dict()


def _cmd_tree(args, conf: Dict[str, Any]) -> Any:
    root = scan_tree(args.root)
    return to_ascii_tree(
        root,
        depth_limit=args.depth if args.depth is not None else FILE_TREE_DEPTH_LIMIT,
        entry_limit=args.limit if args.limit is not None else FILE_TREE_ENTRY_LIMIT,
        show_root_path=not args.no_root_path,
    )


def _cmd_read(args, conf: Dict[str, Any]) -> Any:
    files = read_text_files(args.paths, max_bytes=conf["max_read_bytes"])
    return [f.to_dict() for f in files]


def _cmd_inspect_sheet(args, conf: Dict[str, Any]) -> Any:
    return inspect_workbook(args.path).to_dict()


def _cmd_extract_sheet(args, conf: Dict[str, Any]) -> Any:
    config = TabularConfig(
        sheet=args.sheet,
        id_column=args.id_column,
        description_columns=tuple(cli_args.split_csv(args.description_columns)),
    )
    return [u.to_dict() for u in extract_units(args.path, config)]


def _cmd_extract_blocks(args, conf: Dict[str, Any]) -> Any:
    units = extract_blocks(args.path, args.delimiter, args.id_pattern, args.flags)
    return [u.to_dict() for u in units]


def _cmd_extract_html(args, conf: Dict[str, Any]) -> Any:
    units = extract_html_blocks(
        args.path,
        args.item,
        id_selector=args.id_selector,
        id_attribute=conf["id_attribute"],
        description_selector=args.desc_selector,
    )
    return [u.to_dict() for u in units]


def _cmd_api_units(args, conf: Dict[str, Any]) -> Any:
    endpoint = _require_endpoint(conf, "units_endpoint", "--endpoint")
    units = asyncio.run(
        extract_units_via_api(endpoint, args.path, args.which or conf["default_which"], conf["api_headers"] or None)
    )
    return [u.to_dict() for u in units]


def _cmd_api_table(args, conf: Dict[str, Any]) -> Any:
    endpoint = _require_endpoint(conf, "table_endpoint", "--endpoint")
    if args.source_url:
        table = asyncio.run(fetch_table_from_url(endpoint, args.source_url))
    else:
        table = asyncio.run(fetch_table_from_file(endpoint, args.source_file))
    return table.to_dict()


def _cmd_prompt(args, conf: Dict[str, Any]) -> Any:
    root = args.root
    text = args.text
    selected = [os.path.abspath(p) for p in args.files]
    include_tree = args.tree

    if args.load_session:
        try:
            session = import_session(args.load_session)
        except ValueError as e:
            raise UsageError(f"{args.load_session}: {e}") from e
        root = root or session.root_path
        text = text or session.textarea
        selected = selected or [to_absolute(session.root_path, p) for p in session.selected]
        include_tree = include_tree or session.include_tree

    if args.text_file:
        text = read_text_lossy(args.text_file)
    if include_tree and not root:
        raise UsageError("--tree requires a root directory")

    files = read_text_files(selected, max_bytes=conf["max_read_bytes"])

    if args.payload:
        output = serialize_payload(build_payload(text, files))
    else:
        tree_root = scan_tree(root) if include_tree else None
        output = format_output(
            text,
            files,
            include_tree=include_tree,
            tree_root=tree_root,
            system_prompt=args.system,
        )

    tokens = count_tokens(output)
    logger.info(f"Prompt assembled: {len(files)} files, {tokens:,} tokens.")

    if args.save_session:
        if not root:
            raise UsageError("--save-session requires a root directory")
        session = build_session(
            os.path.abspath(root),
            text,
            selected,
            include_tree,
            "folder",
            saved_token_count=tokens,
        )
        export_session(session, args.save_session)

    return output


def _cmd_save_chunk(args, conf: Dict[str, Any]) -> Any:
    contents = args.contents if args.contents is not None else sys.stdin.read()
    return save_chunk_file(args.directory, args.base, args.ext, contents)


def _cmd_count_tokens(args, conf: Dict[str, Any]) -> Any:
    text = read_text_lossy(args.path) if args.path else sys.stdin.read()
    return {"tokens": count_tokens(text)}


_COMMANDS: Dict[str, Callable[[Any, Dict[str, Any]], Any]] = {
    "scan": _cmd_scan,
    "tree": _cmd_tree,
    "read": _cmd_read,
    "inspect-sheet": _cmd_inspect_sheet,
    "extract-sheet": _cmd_extract_sheet,
    "extract-blocks": _cmd_extract_blocks,
    "extract-html": _cmd_extract_html,
    "api-units": _cmd_api_units,
    "api-table": _cmd_api_table,
    "prompt": _cmd_prompt,
    "save-chunk": _cmd_save_chunk,
    "count-tokens": _cmd_count_tokens,
}

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _require_endpoint(conf: Dict[str, Any], key: str, flag: str) -> str:
    endpoint = conf.get(key) or ""
    if not endpoint:
        raise UsageError(f"No endpoint configured: pass {flag} or set '{key}' in the config file")
    return endpoint


def _emit(result: Any) -> None:
    """Print plain strings verbatim and everything else as indented JSON."""
    if isinstance(result, str):
        print(result, end="" if result.endswith("\n") else "\n")
    else:
        print(json.dumps(result, ensure_ascii=False, indent=2))

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
