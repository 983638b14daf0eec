from __future__ import annotations

"""
Extraction Domain Data Models.

Defines the Data Transfer Objects exchanged between the extraction services
and the interface layers: filesystem tree nodes, prompt units, normalized
API tables and the per-call configuration objects of each extraction
strategy. All models are immutable and serialize to the camelCase JSON
shape used at the command boundary.
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

# -----------------------------------------------------------------------------
# FILESYSTEM MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FileNode:
    """
    One filesystem entry of a scanned directory hierarchy.

    Attributes:
        name: Entry name (last path component).
        path: Full filesystem path of the entry.
        is_dir: True for directories.
        children: Ordered child nodes for directories (possibly empty),
                  None for files.
    """
    name: str
    path: str
    is_dir: bool
    children: Optional[Tuple["FileNode", ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "path": self.path, "isDir": self.is_dir}
        if self.children is not None:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@dataclass(frozen=True)
class FileValue:
    """Filtered text content of one selected file."""
    file_path: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"filePath": self.file_path, "value": self.value}

# -----------------------------------------------------------------------------
# EXTRACTION RESULTS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class PromptUnit:
    """
    Uniform unit of text produced by every extraction strategy.

    Attributes:
        id: Caller-meaningful label (not necessarily unique).
        body: Non-empty trimmed text.
        meta: Optional structured provenance data.
    """
    id: str
    body: str
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "body": self.body}
        if self.meta is not None:
            out["meta"] = dict(self.meta)
        return out


@dataclass(frozen=True)
class ApiTable:
    """
    Flat table normalized from an arbitrary JSON response.

    Attributes:
        columns: Sorted union of all keys observed across source objects.
        rows: One mapping per source object with exactly the keys of columns.
    """
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"columns": list(self.columns), "rows": [dict(r) for r in self.rows]}


@dataclass(frozen=True)
class SheetInfo:
    """Resolved header names of a single worksheet."""
    name: str
    columns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "columns": list(self.columns)}


@dataclass(frozen=True)
class WorkbookInspection:
    """Per-sheet column listing of a workbook."""
    path: str
    sheets: List[SheetInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "sheets": [s.to_dict() for s in self.sheets]}

# -----------------------------------------------------------------------------
# EXTRACTION CONFIGURATION
# -----------------------------------------------------------------------------

class PatternFlag(enum.Enum):
    """Regex flags accepted by the delimiter extractor, keyed by their letter."""
    IGNORECASE = "i"
    MULTILINE = "m"
    DOTALL = "s"

    @property
    def re_flag(self) -> re.RegexFlag:
        return _RE_FLAGS[self]


_RE_FLAGS: Dict[PatternFlag, re.RegexFlag] = {
    PatternFlag.IGNORECASE: re.IGNORECASE,
    PatternFlag.MULTILINE: re.MULTILINE,
    PatternFlag.DOTALL: re.DOTALL,
}


def parse_pattern_flags(flags: Optional[str]) -> FrozenSet[PatternFlag]:
    """
    Translate a flags string such as 'im' into the enumerated flag set.

    Characters other than i, m and s carry no meaning and are ignored.

    Args:
        flags: Raw flags string, possibly None.

    Returns:
        FrozenSet[PatternFlag]: Recognized flags.
    """
    if not flags:
        return frozenset()
    known = {f.value: f for f in PatternFlag}
    return frozenset(known[ch] for ch in flags if ch in known)


@dataclass(frozen=True)
class TabularConfig:
    """Sheet and column selection for spreadsheet extraction."""
    sheet: str
    id_column: str
    description_columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DelimiterConfig:
    """
    Segmentation rules for plaintext extraction.

    Attributes:
        delimiter: Pattern whose match starts split the document.
        id_capture: Optional pattern whose first group yields the unit id.
        flags: Flags applied identically to both patterns.
    """
    delimiter: str
    id_capture: Optional[str] = None
    flags: FrozenSet[PatternFlag] = frozenset()

    @classmethod
    def from_flags_string(
            cls,
            delimiter: str,
            id_capture: Optional[str] = None,
            flags: Optional[str] = None,
    ) -> "DelimiterConfig":
        return cls(delimiter=delimiter, id_capture=id_capture, flags=parse_pattern_flags(flags))

    @property
    def re_flags(self) -> int:
        value = 0
        for flag in self.flags:
            value |= flag.re_flag
        return value


@dataclass(frozen=True)
class DomConfig:
    """
    Selector set for HTML extraction.

    Attributes:
        item_selector: CSS selector of the repeating elements.
        id_selector: Optional selector of the descendant carrying the id.
        id_attribute: Attribute preferred as the id value.
        description_selector: Optional selector of body descendants.
    """
    item_selector: str
    id_selector: Optional[str] = None
    id_attribute: str = "id"
    description_selector: Optional[str] = None
