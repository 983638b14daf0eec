from __future__ import annotations

"""
Prompt Output Formatter.

Assembles the final Markdown prompt from the user's prompt text, an
optional focused unit, the selected files and an optional file tree.
Code fences always outrun the longest backtick sequence in the content
they wrap so embedded Markdown cannot break out of its block.
"""

import json
import os
import re
from typing import Any, Dict, List, Optional

from ragutil.core.scanning.tree_renderer import to_ascii_tree
from ragutil.domain.models import FileNode, FileValue, PromptUnit

MIN_FENCE_LENGTH = 3

_BACKTICK_RUNS = re.compile(r"`+")

LANG_BY_EXTENSION: Dict[str, str] = {
    "ts": "ts", "tsx": "tsx", "js": "javascript", "jsx": "jsx",
    "json": "json", "md": "markdown", "rs": "rust", "py": "python", "sh": "bash",
    "yml": "yaml", "yaml": "yaml", "toml": "toml", "css": "css", "scss": "scss",
    "html": "html", "java": "java", "kt": "kotlin", "go": "go",
    "c": "c", "h": "c", "cc": "cpp", "cpp": "cpp", "hpp": "cpp",
}

# -----------------------------------------------------------------------------
# MARKDOWN HELPERS
# -----------------------------------------------------------------------------

def fence_for(content: str) -> str:
    """Return a backtick fence longer than any backtick run inside content."""
    longest = max((len(m) for m in _BACKTICK_RUNS.findall(content)), default=0)
    return "`" * max(MIN_FENCE_LENGTH, longest + 1)


def lang_from_path(path: str) -> str:
    """Map a file extension to its fence language tag ('' when unknown)."""
    ext = os.path.basename(path).lower().rsplit(".", 1)[-1]
    return LANG_BY_EXTENSION.get(ext, "")


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n")

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def format_output(
        textarea: str,
        files: List[FileValue],
        include_tree: bool = False,
        tree_root: Optional[FileNode] = None,
        unit: Optional[PromptUnit] = None,
        system_prompt: str = "",
) -> str:
    """
    Build the Markdown prompt.

    Sections, in order: System Prompt (when given), Prompt, Unit (when the
    unit has a body), File paths, Files, File Tree (when requested and a
    tree is available).

    Args:
        textarea: Main prompt text.
        files: Selected file contents.
        include_tree: Append the ASCII tree of tree_root.
        tree_root: Scanned tree used for the File Tree section.
        unit: Focused prompt unit, titled by its id.
        system_prompt: Optional system instructions.

    Returns:
        str: The prompt, ending in exactly one newline.
    """
    parts: List[str] = []

    sys_text = (system_prompt or "").strip()
    if sys_text:
        parts += ["# System Prompt", "", sys_text, ""]

    parts += ["# Prompt", "", textarea.rstrip(), ""]

    if unit is not None and unit.body.strip():
        parts += ["## Unit", ""]
        if unit.id:
            parts += [f"**{unit.id}**", ""]
        fence = fence_for(unit.body)
        parts += [fence, _normalize_newlines(unit.body), fence, ""]

    if files:
        parts += ["## File paths", ""]
        parts += [f"- {f.file_path}" for f in files]
        parts.append("")

    parts += ["## Files", ""]
    if not files:
        parts += ["_(no files selected)_", ""]
    for f in files:
        fence = fence_for(f.value)
        parts += [
            f"### {f.file_path}",
            f"{fence}{lang_from_path(f.file_path)}",
            _normalize_newlines(f.value),
            fence,
            "",
        ]

    if include_tree and tree_root is not None:
        tree_text = to_ascii_tree(tree_root)
        fence = fence_for(tree_text)
        parts += ["## File Tree", "", fence, tree_text, fence, ""]

    return "\n".join(parts).rstrip() + "\n"


def build_payload(textarea: str, files: List[FileValue]) -> Dict[str, Any]:
    """Build the structured prompt payload."""
    return {"textarea": textarea, "selectedFiles": [f.to_dict() for f in files]}


def serialize_payload(payload: Dict[str, Any]) -> str:
    """Serialize a payload exactly as it is copied and token-counted."""
    return json.dumps(payload, indent=2, ensure_ascii=False)
