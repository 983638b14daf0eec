from __future__ import annotations

"""
Ignore-File Rule Engine.

Parses a root-level .gitignore file and evaluates its glob rules against
paths relative to the scan root. Implements the standard ignore-file
semantics: comments and blank lines, '!' negation, trailing '/' for
directory-only rules, anchoring by a leading or inner '/', the '*', '?',
'[...]' and '**' wildcards, and last-matching-rule-wins precedence.

Loading fails open: a missing, unreadable or unparsable file yields no
rule set at all, so the caller performs no filtering.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ragutil.domain.constants import IGNORE_FILE_NAME

logger = logging.getLogger(__name__)

# Prefix allowing an unanchored rule to match at any depth
_ANY_DEPTH = "(?:.*/)?"

# -----------------------------------------------------------------------------
# RULE MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class IgnoreRule:
    """
    One compiled line of an ignore file.

    Attributes:
        source: Original pattern text (after whitespace trimming).
        regex: Compiled expression matched against '/'-separated relative paths.
        negated: True for '!' rules that re-include a path.
        dir_only: True for rules ending in '/'.
    """
    source: str
    regex: re.Pattern
    negated: bool = False
    dir_only: bool = False

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        return self.regex.fullmatch(rel_path) is not None


class IgnoreRuleSet:
    """Ordered collection of ignore rules evaluated with last-match-wins."""

    def __init__(self, rules: Iterable[IgnoreRule]):
        self.rules: Tuple[IgnoreRule, ...] = tuple(rules)

    def __len__(self) -> int:
        return len(self.rules)

    def match(self, rel_path: str, is_dir: bool) -> Optional[bool]:
        """
        Evaluate the rules against a single path.

        Returns:
            Optional[bool]: True if ignored, False if explicitly re-included,
                            None if no rule matches.
        """
        verdict: Optional[bool] = None
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                verdict = not rule.negated
        return verdict

    def is_ignored(self, rel_path: str, is_dir: bool) -> bool:
        """
        Decide whether a path is ignored, consulting parents when needed.

        The path's own verdict wins; without one, the nearest parent
        directory with a verdict decides.

        Args:
            rel_path: Path relative to the scan root, '/'-separated.
            is_dir: Whether the path is a directory.

        Returns:
            bool: True if the path should be filtered out.
        """
        rel_path = rel_path.strip("/")
        if not rel_path or rel_path == ".":
            return False

        verdict = self.match(rel_path, is_dir)
        if verdict is not None:
            return verdict

        parts = rel_path.split("/")
        for depth in range(len(parts) - 1, 0, -1):
            parent_verdict = self.match("/".join(parts[:depth]), True)
            if parent_verdict is not None:
                return parent_verdict
        return False

# -----------------------------------------------------------------------------
# PATTERN PARSING
# -----------------------------------------------------------------------------

def parse_ignore_line(line: str) -> Optional[IgnoreRule]:
    """
    Compile one ignore-file line into a rule.

    Args:
        line: Raw line without its terminator.

    Returns:
        Optional[IgnoreRule]: The rule, or None for blanks and comments.

    Raises:
        re.error: If the translated expression does not compile.
    """
    text = _strip_trailing_spaces(line)
    if not text or text.startswith("#"):
        return None

    negated = False
    if text.startswith("!"):
        negated = True
        text = text[1:]
    elif text.startswith(("\\!", "\\#")):
        text = text[1:]

    dir_only = text.endswith("/")
    text = text.rstrip("/")
    if not text:
        return None

    anchored = "/" in text
    if text.startswith("/"):
        text = text[1:]

    body = _glob_to_regex(text)
    if not anchored:
        body = _ANY_DEPTH + body

    return IgnoreRule(
        source=line.strip(),
        regex=re.compile(body, re.DOTALL),
        negated=negated,
        dir_only=dir_only,
    )


def parse_ignore_lines(lines: Iterable[str]) -> IgnoreRuleSet:
    """Compile every meaningful line of an ignore file, preserving order."""
    rules: List[IgnoreRule] = []
    for line in lines:
        rule = parse_ignore_line(line)
        if rule is not None:
            rules.append(rule)
    return IgnoreRuleSet(rules)


def load_ignore_rules(root_path: str, file_name: str = IGNORE_FILE_NAME) -> Optional[IgnoreRuleSet]:
    """
    Load the ignore file located directly at the scan root.

    Args:
        root_path: Scan root directory.
        file_name: Ignore file name.

    Returns:
        Optional[IgnoreRuleSet]: Compiled rules, or None when the file is
                                 absent, unreadable or unparsable.
    """
    ignore_path = os.path.join(root_path, file_name)
    if not os.path.isfile(ignore_path):
        return None

    try:
        with open(ignore_path, "r", encoding="utf-8-sig") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignore file unreadable, scanning without filters: {ignore_path} ({e})")
        return None

    try:
        rule_set = parse_ignore_lines(lines)
    except re.error as e:
        logger.warning(f"Ignore file unparsable, scanning without filters: {ignore_path} ({e})")
        return None

    logger.debug(f"Loaded {len(rule_set)} rules from {ignore_path}")
    return rule_set

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _strip_trailing_spaces(line: str) -> str:
    """Remove trailing spaces unless the last one is escaped with a backslash."""
    stripped = line.rstrip(" \t\r\n")
    if stripped.endswith("\\") and len(stripped) < len(line.rstrip("\r\n")):
        return stripped + " "
    return stripped


def _glob_to_regex(glob: str) -> str:
    """
    Translate gitignore glob syntax into a Python regex body.

    '*' and '?' never cross '/'; '**' spans directories when it forms a
    whole path component.
    """
    out: List[str] = []
    i, n = 0, len(glob)

    while i < n:
        c = glob[i]

        if c == "*":
            if glob.startswith("**", i):
                j = i + 2
                whole_component = (i == 0 or glob[i - 1] == "/") and (j == n or glob[j] == "/")
                if whole_component:
                    if j == n:
                        out.append(".*")
                    else:
                        out.append(_ANY_DEPTH)
                        j += 1
                    i = j
                    continue
                out.append("[^/]*")
                i = j
                continue
            out.append("[^/]*")

        elif c == "?":
            out.append("[^/]")

        elif c == "[":
            k = i + 1
            if k < n and glob[k] in "!^":
                k += 1
            if k < n and glob[k] == "]":
                k += 1
            end = glob.find("]", k)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = glob[i + 1:end]
                if body[:1] in ("!", "^"):
                    body = "^" + body[1:]
                body = body.replace("\\", "\\\\")
                out.append(f"[{body}]")
                i = end + 1
                continue

        elif c == "\\" and i + 1 < n:
            out.append(re.escape(glob[i + 1]))
            i += 2
            continue

        else:
            out.append(re.escape(c))

        i += 1

    return "".join(out)
