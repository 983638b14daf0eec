from __future__ import annotations

"""
Unit tests for the ASCII Tree Renderer.

Verifies connectors, depth truncation, the entry limit and file path
collection on hand-built FileNode hierarchies.
"""

from ragutil.core.scanning.tree_renderer import collect_file_paths, to_ascii_tree
from ragutil.domain.models import FileNode


def _file(path: str) -> FileNode:
    return FileNode(name=path.rsplit("/", 1)[-1], path=path, is_dir=False)


def _dir(path: str, *children: FileNode) -> FileNode:
    return FileNode(name=path.rsplit("/", 1)[-1], path=path, is_dir=True, children=tuple(children))


def test_render_connectors_and_root_label() -> None:
    """TC-01: Children use branch connectors and directories end with '/'."""
    root = _dir("/p", _dir("/p/src", _file("/p/src/a.py")), _file("/p/README.md"))

    text = to_ascii_tree(root)

    assert text.splitlines() == [
        "p (/p)/",
        "├── src/",
        "│   └── a.py",
        "└── README.md",
    ]


def test_render_without_root_path() -> None:
    """TC-02: The root label can omit the full path."""
    root = _dir("/p", _file("/p/x"))
    assert to_ascii_tree(root, show_root_path=False).splitlines()[0] == "p/"


def test_render_depth_limit_marks_hidden_content() -> None:
    """TC-03: Directories cut at the depth limit are followed by an ellipsis."""
    root = _dir("/p", _dir("/p/a", _dir("/p/a/b", _file("/p/a/b/c.txt"))))

    shallow = to_ascii_tree(root, depth_limit=1, show_root_path=False).splitlines()
    deeper = to_ascii_tree(root, depth_limit=2, show_root_path=False).splitlines()

    assert shallow == ["p/", "└── a/", "    …"]
    assert deeper == ["p/", "└── a/", "    └── b/", "        …"]


def test_render_entry_limit_truncates() -> None:
    """TC-04: Output never exceeds the entry limit, which is at least 50."""
    files = [_file(f"/p/f{i:03d}") for i in range(80)]
    root = _dir("/p", *files)

    lines = to_ascii_tree(root, entry_limit=10).splitlines()

    assert len(lines) == 50
    assert lines[-1] == "├── f048"


def test_render_entry_limit_inside_directory_adds_marker() -> None:
    """TC-05: Reaching the limit on a directory line announces the cut."""
    files = [_file(f"/p/f{i:03d}") for i in range(48)]
    sub = _dir("/p/sub", _file("/p/sub/x"), _file("/p/sub/y"))
    root = _dir("/p", *files, sub)

    lines = to_ascii_tree(root, entry_limit=50).splitlines()

    assert lines[-2] == "└── sub/"
    assert lines[-1] == "    … (+ more)"


def test_collect_file_paths_only_returns_files() -> None:
    """TC-06: Directory paths are excluded from the collected set."""
    root = _dir("/p", _dir("/p/src", _file("/p/src/a.py")), _file("/p/b.txt"))
    assert collect_file_paths(root) == {"/p/src/a.py", "/p/b.txt"}
