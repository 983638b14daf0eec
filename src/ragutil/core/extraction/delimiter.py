from __future__ import annotations

"""
Delimiter-Based Block Extractor.

Splits a plaintext document at every match start of a delimiter pattern.
Each segment keeps its delimiter text at its head, is trimmed, and becomes
one prompt unit. An optional id pattern supplies the unit id through its
first capture group.
"""

import logging
import re
from typing import List, Optional, Union

from ragutil.domain.errors import PatternError
from ragutil.domain.models import DelimiterConfig, PromptUnit
from ragutil.infra.fs import read_text_lossy

logger = logging.getLogger(__name__)

# Id used when an undelimited document yields a single unit
SINGLE_UNIT_ID = "1"

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def extract_blocks(
        path: str,
        delimiter_pattern: Union[str, DelimiterConfig],
        id_capture_pattern: Optional[str] = None,
        flags: Optional[str] = None,
) -> List[PromptUnit]:
    """
    Read a text file and segment it into prompt units.

    Args:
        path: Text file path (decoded as UTF-8, invalid bytes replaced).
        delimiter_pattern: Delimiter regex, or a full DelimiterConfig.
        id_capture_pattern: Optional regex whose group 1 is the unit id.
        flags: Optional flag letters among 'i', 'm', 's'.

    Returns:
        List[PromptUnit]: Units in document order.

    Raises:
        NotFoundError: If the file does not exist.
        IoError: If the file cannot be read.
        PatternError: If a pattern does not compile.
    """
    if isinstance(delimiter_pattern, DelimiterConfig):
        config = delimiter_pattern
    else:
        config = DelimiterConfig.from_flags_string(delimiter_pattern, id_capture_pattern, flags)

    text = read_text_lossy(path)
    units = split_blocks(text, config)
    logger.info(f"Extracted {len(units)} blocks from {path}")
    return units


def split_blocks(text: str, config: DelimiterConfig) -> List[PromptUnit]:
    """
    Segment already-loaded text according to config.

    Raises:
        PatternError: If a pattern does not compile.
    """
    delimiter = _compile(config.delimiter, config.re_flags, "delimiter")
    id_re = _compile(config.id_capture, config.re_flags, "id") if config.id_capture else None

    starts = [m.start() for m in delimiter.finditer(text)]
    if not starts:
        body = text.strip()
        if not body:
            return []
        return [PromptUnit(id=_capture_id(id_re, text) or SINGLE_UNIT_ID, body=body)]

    bounds = [0] + starts + [len(text)]
    units: List[PromptUnit] = []
    for s, e in zip(bounds, bounds[1:]):
        if e <= s:
            continue
        block = text[s:e].strip()
        if not block:
            continue
        unit_id = _capture_id(id_re, block) or str(len(units) + 1)
        units.append(PromptUnit(id=unit_id, body=block))

    logger.debug(f"Delimiter matched {len(starts)} times, {len(units)} non-blank segments.")
    return units

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _compile(pattern: str, re_flags: int, which: str) -> re.Pattern:
    try:
        return re.compile(pattern, re_flags)
    except re.error as e:
        raise PatternError(f"Invalid {which} pattern {pattern!r}: {e}") from e


def _capture_id(id_re: Optional[re.Pattern], text: str) -> Optional[str]:
    """Return group 1 of the first id match, if there is one."""
    if id_re is None:
        return None
    m = id_re.search(text)
    if m is None or m.re.groups < 1:
        return None
    return m.group(1)
