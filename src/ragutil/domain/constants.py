from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes the fixed values shared by the extraction services: read
limits, conventional JSON key names, HTTP identification headers and the
site-specific recovery rules applied when fetching remote documents.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

CURRENT_CONFIG_VERSION = "1.0.0"
APP_NAME = "ragutil"

IGNORE_FILE_NAME = ".gitignore"
HIDDEN_ENTRY_PREFIX = "."

DEFAULT_MAX_READ_BYTES = 512 * 1024
DEFAULT_ID_ATTRIBUTE = "id"

# Keys checked, in order, when looking for the record array of a JSON object
TABLE_KEY_PREFERENCE: Tuple[str, ...] = ("items", "rows", "data", "result", "notes", "records")

# -----------------------------------------------------------------------------
# HTTP IDENTIFICATION
# -----------------------------------------------------------------------------

API_USER_AGENT = "ragutil/1.0"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/127 Safari/537.36"
)
BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}
MAX_REDIRECTS = 10

# -----------------------------------------------------------------------------
# REMOTE DOCUMENT RECOVERY
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RecoveryRule:
    """
    Alternate-URL attempt for sites that serve an app shell instead of content.

    Attributes:
        host_fragment: Substring identifying the site in the URL.
        marker: Substring present only in a fully rendered document.
        old_segment: URL path segment to replace.
        new_segment: Replacement segment.
    """
    host_fragment: str
    marker: str
    old_segment: str
    new_segment: str


RECOVERY_RULES: Tuple[RecoveryRule, ...] = (
    RecoveryRule(
        host_fragment="ecfr.gov",
        marker="flush-paragraph-2",
        old_segment="/on/",
        new_segment="/current/",
    ),
)
