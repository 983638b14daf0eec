from __future__ import annotations

"""
ASCII Content Filter.

Restricts raw bytes to a safe textual subset before they are embedded in a
prompt: tab, newline, carriage return and printable ASCII survive, every
other byte is dropped. Used when reading selected files and when fetching
remote documents.
"""

import logging
import os
from typing import List

from ragutil.domain.constants import DEFAULT_MAX_READ_BYTES
from ragutil.domain.errors import IoError
from ragutil.domain.models import FileValue

logger = logging.getLogger(__name__)

# \t \n \r plus the printable range 32..126
_ALLOWED_BYTES = bytes([9, 10, 13]) + bytes(range(32, 127))
_DROPPED_BYTES = bytes(b for b in range(256) if b not in _ALLOWED_BYTES)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def ascii_only(data: bytes) -> str:
    """
    Drop every byte outside the safe textual subset.

    Args:
        data: Raw byte buffer.

    Returns:
        str: Filtered ASCII text.
    """
    return data.translate(None, _DROPPED_BYTES).decode("ascii")


def read_text_files(paths: List[str], max_bytes: int = DEFAULT_MAX_READ_BYTES) -> List[FileValue]:
    """
    Read the leading bytes of each selected file as filtered ASCII text.

    Paths that are not regular files (missing, directories) are skipped.

    Args:
        paths: Files to read, in output order.
        max_bytes: Per-file read cap.

    Returns:
        List[FileValue]: One entry per readable file.

    Raises:
        IoError: If an existing file cannot be opened or read.
    """
    out: List[FileValue] = []
    for p in paths:
        if not os.path.isfile(p):
            logger.debug(f"Skipping non-file selection: {p}")
            continue
        try:
            with open(p, "rb") as f:
                data = f.read(max_bytes)
        except OSError as e:
            raise IoError(f"{p}: {e}") from e
        out.append(FileValue(file_path=p, value=ascii_only(data)))

    logger.info(f"Read {len(out)} of {len(paths)} selected files.")
    return out
