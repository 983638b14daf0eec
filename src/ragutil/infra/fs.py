from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides cross-platform path resolution, resilient document reading and
collision-free artifact persistence. Acts as the narrow I/O boundary used by
the extraction services so that they never touch 'open' directly with
ad-hoc error handling.
"""

import os
import re
from typing import Optional

from ragutil.domain.errors import IoError, NotFoundError

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "ragutil"
UNIX_APP_DIR_NAME = ".ragutil"

DEFAULT_CHUNK_EXTENSION = "md"
DEFAULT_CHUNK_BASE = "chunk"
MAX_NAME_ATTEMPTS = 9999

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UNDERSCORE_RUNS = re.compile(r"_{2,}")

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/ragutil
    - Linux/Mac: ~/.ragutil

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        path = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion and user home shortcuts.
    Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is blank.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip() or fallback
    return os.path.abspath(os.path.expandvars(os.path.expanduser(p)))

# -----------------------------------------------------------------------------
# DOCUMENT READING
# -----------------------------------------------------------------------------

def read_text_lossy(path: str) -> str:
    """
    Read a whole document as UTF-8, replacing invalid byte sequences.

    Args:
        path: Source file path.

    Returns:
        str: Decoded document text.

    Raises:
        NotFoundError: If the path does not exist.
        IoError: If the file cannot be opened or read.
    """
    if not os.path.exists(path):
        raise NotFoundError(f"File not found: {path}")
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise IoError(f"{path}: {e}") from e
    return data.decode("utf-8", errors="replace")

# -----------------------------------------------------------------------------
# ARTIFACT PERSISTENCE
# -----------------------------------------------------------------------------

def sanitize_filename(value: str) -> str:
    """
    Reduce an arbitrary string to a portable filename fragment.

    Keeps ASCII letters, digits, '.', '-' and '_'; everything else becomes
    '_', consecutive underscores collapse and edge underscores are trimmed.
    """
    out = _UNSAFE_FILENAME_CHARS.sub("_", value)
    out = _UNDERSCORE_RUNS.sub("_", out)
    return out.strip("_")


def save_chunk_file(
        directory: str,
        base: str,
        extension: Optional[str] = DEFAULT_CHUNK_EXTENSION,
        contents: str = "",
) -> str:
    """
    Write text to a uniquely named file inside the target directory.

    Candidate names are tried in order: base.ext, base--2.ext, base--3.ext...
    The first name that does not exist yet is used.

    Args:
        directory: Output directory, created if missing.
        base: Desired base filename (sanitized).
        extension: Desired extension without dot (sanitized, default 'md').
        contents: Text to persist as UTF-8.

    Returns:
        str: Absolute path of the written file.

    Raises:
        IoError: If the directory cannot be created, no free name is found
                 within the attempt bound, or the write fails.
    """
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise IoError(f"mkdir failed: {e}") from e

    ext = sanitize_filename((extension or DEFAULT_CHUNK_EXTENSION).strip("."))
    stem = sanitize_filename(base) or DEFAULT_CHUNK_BASE

    final_path = ""
    for attempt in range(1, MAX_NAME_ATTEMPTS + 1):
        name = f"{stem}.{ext}" if attempt == 1 else f"{stem}--{attempt}.{ext}"
        candidate = os.path.join(directory, name)
        if not os.path.exists(candidate):
            final_path = candidate
            break

    if not final_path:
        raise IoError("Failed to create a unique filename (too many conflicts)")

    try:
        with open(final_path, "w", encoding="utf-8") as f:
            f.write(contents)
    except OSError as e:
        raise IoError(f"write failed: {e}") from e

    return os.path.abspath(final_path)
