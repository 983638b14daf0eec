from __future__ import annotations

"""
Tree Renderer.

Converts a scanned FileNode hierarchy into a compact ASCII outline for
inclusion in prompts. Output is bounded both in depth and in total number
of entries so that very large trees stay readable.
"""

from typing import List, Set

from ragutil.domain.models import FileNode

FILE_TREE_DEPTH_LIMIT = 4
FILE_TREE_ENTRY_LIMIT = 1500
FILE_TREE_MIN_ENTRY_LIMIT = 50

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def collect_file_paths(root: FileNode) -> Set[str]:
    """Gather the paths of every file node beneath root."""
    out: Set[str] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_dir:
            stack.extend(node.children or ())
        else:
            out.add(node.path)
    return out


def to_ascii_tree(
        root: FileNode,
        depth_limit: int = FILE_TREE_DEPTH_LIMIT,
        entry_limit: int = FILE_TREE_ENTRY_LIMIT,
        show_root_path: bool = True,
) -> str:
    """
    Render a FileNode tree as an ASCII outline.

    Directories carry a trailing '/'. A directory at the depth limit with
    hidden content is followed by a '…' line; reaching the entry limit
    emits '… (+ more)' and stops.

    Args:
        root: Root node to render.
        depth_limit: Number of directory levels expanded below the root.
        entry_limit: Maximum number of emitted lines (never below 50).
        show_root_path: Append the root's full path to its label.

    Returns:
        str: Newline-joined outline.
    """
    limit = max(FILE_TREE_MIN_ENTRY_LIMIT, entry_limit)
    label = f"{root.name} ({root.path})" if show_root_path else root.name
    lines: List[str] = [label + ("/" if root.is_dir else "")]

    if root.is_dir:
        _render_children(root, "", 0, depth_limit, limit, lines)
    return "\n".join(lines)

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _render_children(
        node: FileNode,
        prefix: str,
        depth: int,
        depth_limit: int,
        limit: int,
        lines: List[str],
) -> bool:
    """
    Append the children of node to lines.

    Returns:
        bool: False once the entry limit has been reached.
    """
    children = node.children or ()
    total = len(children)

    for i, child in enumerate(children):
        if len(lines) >= limit:
            lines.append(f"{prefix}… (+ more)")
            return False

        is_last = i == total - 1
        connector = "└── " if is_last else "├── "
        next_prefix = prefix + ("    " if is_last else "│   ")

        if child.is_dir:
            lines.append(f"{prefix}{connector}{child.name}/")
            if depth + 1 < depth_limit:
                if not _render_children(child, next_prefix, depth + 1, depth_limit, limit, lines):
                    return False
            elif child.children and len(lines) < limit:
                lines.append(f"{next_prefix}…")
        else:
            lines.append(f"{prefix}{connector}{child.name}")

        if len(lines) >= limit:
            return False

    return True
