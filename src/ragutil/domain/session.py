from __future__ import annotations

"""
Session File Domain Model.

A session captures the working state of a prompt-building run (root folder,
prompt text, selected files, extraction source and configuration) so it can
be exported to JSON and re-imported later. Selected paths are stored
relative to the root so sessions survive moving the project folder.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ragutil.domain.errors import IoError

logger = logging.getLogger(__name__)

SESSION_VERSION = 4
SESSION_MODES = ("folder", "excel", "block")

_SEPARATORS = re.compile(r"[\\/]+")

# -----------------------------------------------------------------------------
# PATH HELPERS
# -----------------------------------------------------------------------------

def _sep_for(path: str) -> str:
    return "\\" if "\\" in path else "/"


def to_relative(root: str, absolute: str) -> str:
    """
    Express an absolute path relative to root, tolerating mixed separators.

    Paths outside the root are returned unchanged.
    """
    sep = _sep_for(root)
    root_norm = root if root.endswith(sep) else root + sep
    if absolute.startswith(root_norm):
        return absolute[len(root_norm):]

    abs_fix = sep.join(_SEPARATORS.split(absolute))
    root_fix = sep.join(_SEPARATORS.split(root_norm))
    return abs_fix[len(root_fix):] if abs_fix.startswith(root_fix) else absolute


def to_absolute(root: str, relative: str) -> str:
    """Join a stored relative path back onto root using root's separator."""
    sep = _sep_for(root)
    rel_norm = sep.join(_SEPARATORS.split(relative))
    return (root if root.endswith(sep) else root + sep) + rel_norm

# -----------------------------------------------------------------------------
# MODEL
# -----------------------------------------------------------------------------

@dataclass
class SessionFile:
    """
    Version 4 session payload.

    Attributes:
        root_path: Absolute root directory of the session.
        textarea: Prompt text.
        selected: Selected file paths, relative to root_path.
        include_tree: Whether the file tree is appended to the prompt.
        mode: One of 'folder', 'excel', 'block'.
        unit_source: Optional extraction source, relative to root_path.
        unit_config: Optional extraction configuration mapping.
        cursor: Optional current unit position ({'id': str, 'index': int}).
        saved_token_count: Optional token count at save time.
    """
    root_path: str
    textarea: str
    selected: List[str] = field(default_factory=list)
    include_tree: bool = False
    mode: str = "folder"
    unit_source: Optional[str] = None
    unit_config: Optional[Dict[str, Any]] = None
    cursor: Optional[Dict[str, Any]] = None
    saved_token_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "version": SESSION_VERSION,
            "rootPath": self.root_path,
            "textarea": self.textarea,
            "selected": list(self.selected),
            "includeTree": bool(self.include_tree),
            "mode": self.mode,
        }
        if self.unit_source is not None:
            out["unitSource"] = self.unit_source
        if self.unit_config is not None:
            out["unitConfig"] = self.unit_config
        if self.cursor is not None:
            out["cursor"] = self.cursor
        if self.saved_token_count is not None:
            out["savedTokenCount"] = self.saved_token_count
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionFile":
        return cls(
            root_path=data["rootPath"],
            textarea=data["textarea"],
            selected=list(data["selected"]),
            include_tree=bool(data.get("includeTree", False)),
            mode=data["mode"],
            unit_source=data.get("unitSource"),
            unit_config=data.get("unitConfig"),
            cursor=data.get("cursor"),
            saved_token_count=data.get("savedTokenCount"),
        )


def build_session(
        root_path: str,
        textarea: str,
        selected_absolute: List[str],
        include_tree: bool,
        mode: str,
        unit_source_abs: Optional[str] = None,
        unit_config: Optional[Dict[str, Any]] = None,
        cursor: Optional[Dict[str, Any]] = None,
        saved_token_count: Optional[int] = None,
) -> SessionFile:
    """Assemble a session from absolute paths, relativizing them to the root."""
    return SessionFile(
        root_path=root_path,
        textarea=textarea,
        selected=[to_relative(root_path, p) for p in selected_absolute],
        include_tree=bool(include_tree),
        mode=mode,
        unit_source=to_relative(root_path, unit_source_abs) if unit_source_abs else None,
        unit_config=unit_config,
        cursor=cursor,
        saved_token_count=saved_token_count,
    )

# -----------------------------------------------------------------------------
# VALIDATION
# -----------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_session(data: Any) -> bool:
    """
    Check that a decoded JSON value is a well-formed version 4 session.

    Args:
        data: Decoded JSON value.

    Returns:
        bool: True when every required field is present with the right type.
    """
    if not isinstance(data, dict) or data.get("version") != SESSION_VERSION:
        return False
    if not isinstance(data.get("rootPath"), str):
        return False
    if not isinstance(data.get("textarea"), str):
        return False

    selected = data.get("selected")
    if not isinstance(selected, list) or not all(isinstance(v, str) for v in selected):
        return False
    if "includeTree" in data and not isinstance(data["includeTree"], bool):
        return False
    if data.get("mode") not in SESSION_MODES:
        return False
    if "unitSource" in data and data["unitSource"] is not None and not isinstance(data["unitSource"], str):
        return False

    cursor = data.get("cursor")
    if cursor is not None:
        if not isinstance(cursor, dict):
            return False
        if "index" in cursor and not _is_number(cursor["index"]):
            return False
        if "id" in cursor and not isinstance(cursor["id"], str):
            return False

    if data.get("savedTokenCount") is not None and not _is_number(data["savedTokenCount"]):
        return False
    return True

# -----------------------------------------------------------------------------
# EXPORT / IMPORT
# -----------------------------------------------------------------------------

def export_session(session: SessionFile, path: str) -> None:
    """
    Write a session as indented JSON.

    Raises:
        IoError: If the file cannot be written.
    """
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, indent=2)
    except OSError as e:
        raise IoError(f"{path}: {e}") from e
    logger.info(f"Session exported to {path}")


def import_session(path: str) -> SessionFile:
    """
    Read and validate a session file.

    Raises:
        IoError: If the file cannot be read.
        ValueError: If the content is not a valid session.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise IoError(f"{path}: {e}") from e

    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ValueError("Invalid session file") from e

    if not validate_session(data):
        raise ValueError("Invalid session file")
    return SessionFile.from_dict(data)
