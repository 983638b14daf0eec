from __future__ import annotations

"""
Ignore-Aware Directory Tree Scanner.

Builds the navigable FileNode hierarchy used for source selection. Honors
a single .gitignore located at the scan root, hides dot-entries, and
orders every directory's children deterministically: directories first,
then files, each group case-insensitively by name.
"""

import logging
import os
from typing import List, Optional

from ragutil.core.scanning.ignore_rules import IgnoreRuleSet, load_ignore_rules
from ragutil.domain.constants import HIDDEN_ENTRY_PREFIX
from ragutil.domain.errors import IoError, NotFoundError
from ragutil.domain.models import FileNode

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def scan_tree(root_path: str) -> FileNode:
    """
    Scan a directory tree into an ordered FileNode hierarchy.

    Args:
        root_path: Directory to scan.

    Returns:
        FileNode: Root directory node.

    Raises:
        NotFoundError: If root_path does not exist.
        IoError: If root_path is not a readable directory.
    """
    if not os.path.exists(root_path):
        raise NotFoundError(f"Path does not exist: {root_path}")
    if not os.path.isdir(root_path):
        raise IoError(f"Not a directory: {root_path}")

    logger.info(f"Scanning directory tree: {root_path}")
    rules = load_ignore_rules(root_path)

    try:
        entries = _list_entries(root_path)
    except OSError as e:
        raise IoError(f"{root_path}: {e}") from e

    return _build_dir_node(root_path, root_path, rules, entries)


def sort_children(children: List[FileNode]) -> List[FileNode]:
    """Order nodes directories-first, then case-insensitively by name."""
    return sorted(children, key=lambda n: (not n.is_dir, n.name.lower()))

# -----------------------------------------------------------------------------
# INTERNAL HELPERS (RECURSION)
# -----------------------------------------------------------------------------

def _build_dir_node(
        root: str,
        directory: str,
        rules: Optional[IgnoreRuleSet],
        entries: List[os.DirEntry],
) -> FileNode:
    """Recursively assemble the node of an already-listed directory."""
    children: List[FileNode] = []

    for entry in entries:
        if entry.name.startswith(HIDDEN_ENTRY_PREFIX):
            continue

        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue

        if _is_ignored(root, rules, entry.path, is_dir):
            continue

        if is_dir:
            children.append(_visit_subdirectory(root, entry.path, rules))
        else:
            children.append(FileNode(name=entry.name, path=entry.path, is_dir=False))

    return FileNode(
        name=_node_name(directory),
        path=directory,
        is_dir=True,
        children=tuple(sort_children(children)),
    )


def _visit_subdirectory(root: str, directory: str, rules: Optional[IgnoreRuleSet]) -> FileNode:
    """
    Build a non-root directory node.

    Unreadable directories become nodes with no children.
    """
    try:
        entries = _list_entries(directory)
    except OSError as e:
        logger.debug(f"Skipping unreadable directory {directory}: {e}")
        return _empty_dir_node(directory)

    return _build_dir_node(root, directory, rules, entries)


def _list_entries(directory: str) -> List[os.DirEntry]:
    with os.scandir(directory) as it:
        return list(it)


def _is_ignored(root: str, rules: Optional[IgnoreRuleSet], path: str, is_dir: bool) -> bool:
    """Match a path, relative to the scan root, against the loaded rules."""
    if rules is None:
        return False
    rel = os.path.relpath(path, root).replace(os.sep, "/")
    return rules.is_ignored(rel, is_dir)


def _empty_dir_node(directory: str) -> FileNode:
    return FileNode(name=_node_name(directory), path=directory, is_dir=True, children=())


def _node_name(path: str) -> str:
    return os.path.basename(os.path.normpath(path)) or path
