from __future__ import annotations

"""
Logging Core Orchestrator.

Maintains the idempotent lifecycle of the logging subsystem. Records are
pushed through a QueueHandler and written by a QueueListener thread so that
file I/O never stalls the caller, including the worker threads used by the
remote extraction coroutines.
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import List, Optional

from ragutil.infra.fs import get_user_data_dir
from ragutil.infra.logging.config import _LEVEL_MAP, LoggingConfig
from ragutil.infra.logging.handlers import (
    _create_rotating_file_handler,
    _is_our_handler,
    _tag_handler,
)

_CONFIGURED_FLAG_ATTR: str = "_ragutil_configured"
_QUEUE_LISTENER_ATTR: str = "_ragutil_queue_listener"


# ==============================================================================
# PUBLIC API
# ==============================================================================

def get_default_log_path(file_name: str = "ragutil.log") -> str:
    """
    Resolve the standard diagnostic log path within the user data directory.

    Args:
        file_name: Target log filename.

    Returns:
        str: Absolute path to the persistent log file.
    """
    return os.path.join(get_user_data_dir(), "logs", file_name)


def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Configure the root logger once, using non-blocking queue-based I/O.

    Subsequent calls are no-ops unless force is set, in which case the
    previously attached ragutil handlers and listener are torn down first.

    Args:
        cfg: Logging configuration.
        force: Re-initialize even if already configured.

    Returns:
        logging.Logger: The configured root logger.
    """
    root = logging.getLogger()

    if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
        return root

    level_int = _parse_level(cfg.level)
    root.setLevel(level_int)

    _remove_our_handlers(root)
    _stop_existing_listener(root)

    handlers_list: List[logging.Handler] = []

    if cfg.console:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(level_int)
        sh.setFormatter(logging.Formatter(cfg.console_fmt))
        _tag_handler(sh)
        handlers_list.append(sh)

    if cfg.log_file:
        fh = _create_rotating_file_handler(
            cfg.log_file,
            level_int,
            logging.Formatter(cfg.file_fmt, datefmt=cfg.datefmt),
            cfg.max_bytes,
            cfg.backup_count,
        )
        if fh:
            handlers_list.append(fh)

    if not handlers_list:
        return root

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
    queue_handler = QueueHandler(log_queue)
    _tag_handler(queue_handler)

    listener = QueueListener(log_queue, *handlers_list, respect_handler_level=True)
    try:
        listener.start()
    except RuntimeError:
        return _emergency_console(root)

    root.addHandler(queue_handler)
    setattr(root, _QUEUE_LISTENER_ATTR, listener)
    setattr(root, _CONFIGURED_FLAG_ATTR, True)

    # Flush pending records on interpreter shutdown
    atexit.register(_safe_stop_listener, listener)

    return root


def get_logger(name: str) -> logging.Logger:
    """Acquire a named logger (usually __name__)."""
    return logging.getLogger(name)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _parse_level(level: str) -> int:
    """Convert a textual level to its numeric constant, defaulting to INFO."""
    if not level:
        return logging.INFO
    return _LEVEL_MAP.get(str(level).strip().upper(), logging.INFO)


def _remove_our_handlers(root: logging.Logger) -> None:
    """Detach and close every ragutil-managed handler from the root."""
    for h in list(root.handlers):
        if _is_our_handler(h):
            root.removeHandler(h)
            h.close()


def _stop_existing_listener(root: logging.Logger) -> None:
    """Stop and forget the active QueueListener, if any."""
    listener = getattr(root, _QUEUE_LISTENER_ATTR, None)
    if listener:
        _safe_stop_listener(listener)
        setattr(root, _QUEUE_LISTENER_ATTR, None)
    setattr(root, _CONFIGURED_FLAG_ATTR, False)


def _safe_stop_listener(listener: Optional[QueueListener]) -> None:
    """Stop a QueueListener, tolerating listeners that were already stopped."""
    if listener is None:
        return
    if getattr(listener, "_thread", None) is not None:
        listener.stop()


def _emergency_console(root: logging.Logger) -> logging.Logger:
    """Attach a plain stderr handler when the queue listener cannot start."""
    root.setLevel(logging.INFO)
    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(logging.Formatter("CRITICAL FALLBACK | %(levelname)s | %(message)s"))
    _tag_handler(sh)
    root.addHandler(sh)
    root.warning("Diagnostic infrastructure failed. Switched to emergency console.")
    return root
