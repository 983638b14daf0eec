from __future__ import annotations

"""
Unit tests for the Ignore-File Rule Engine.

Verifies glob translation, anchoring, directory-only rules, negation
precedence and the fail-open loading policy.
"""

from pathlib import Path

import pytest

from ragutil.core.scanning.ignore_rules import (
    load_ignore_rules,
    parse_ignore_line,
    parse_ignore_lines,
)

# -----------------------------------------------------------------------------
# LINE PARSING
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("line", ["", "   ", "# comment", "/"])
def test_blank_and_comment_lines_yield_no_rule(line: str) -> None:
    """TC-01: Blank lines, comments and bare slashes carry no rule."""
    assert parse_ignore_line(line) is None


def test_escaped_hash_is_a_literal_pattern() -> None:
    """TC-02: A backslash-escaped '#' starts a real pattern."""
    rule = parse_ignore_line(r"\#notes")
    assert rule is not None
    assert rule.matches("#notes", is_dir=False)


def test_negation_and_dir_only_flags() -> None:
    """TC-03: '!' and trailing '/' are recorded on the rule."""
    rule = parse_ignore_line("!build/")
    assert rule is not None
    assert rule.negated is True
    assert rule.dir_only is True


# -----------------------------------------------------------------------------
# MATCHING SEMANTICS
# -----------------------------------------------------------------------------

def test_unanchored_pattern_matches_at_any_depth() -> None:
    """TC-04: A slash-free pattern matches the name in every directory."""
    rules = parse_ignore_lines(["*.log"])
    assert rules.is_ignored("app.log", False)
    assert rules.is_ignored("deep/nested/app.log", False)
    assert not rules.is_ignored("app.txt", False)


def test_anchored_pattern_only_matches_from_root() -> None:
    """TC-05: A leading slash anchors the pattern to the scan root."""
    rules = parse_ignore_lines(["/dist"])
    assert rules.is_ignored("dist", True)
    assert not rules.is_ignored("pkg/dist", True)


def test_star_does_not_cross_directories() -> None:
    """TC-06: '*' stays within one path component."""
    rules = parse_ignore_lines(["docs/*.md"])
    assert rules.is_ignored("docs/readme.md", False)
    assert not rules.is_ignored("docs/api/readme.md", False)


def test_double_star_spans_directories() -> None:
    """TC-07: '**/' matches zero or more directories."""
    rules = parse_ignore_lines(["docs/**/*.md"])
    assert rules.is_ignored("docs/readme.md", False)
    assert rules.is_ignored("docs/api/v1/readme.md", False)


def test_dir_only_rule_skips_files() -> None:
    """TC-08: A trailing slash restricts the rule to directories."""
    rules = parse_ignore_lines(["cache/"])
    assert rules.is_ignored("cache", True)
    assert not rules.is_ignored("cache", False)


def test_children_inherit_parent_verdict() -> None:
    """TC-09: Entries under an ignored directory are ignored."""
    rules = parse_ignore_lines(["build/"])
    assert rules.is_ignored("build/out/app.bin", False)


def test_last_matching_rule_wins() -> None:
    """TC-10: A later negation re-includes a path excluded earlier."""
    rules = parse_ignore_lines(["*.log", "!keep.log"])
    assert rules.is_ignored("debug.log", False)
    assert not rules.is_ignored("keep.log", False)

    reversed_rules = parse_ignore_lines(["!keep.log", "*.log"])
    assert reversed_rules.is_ignored("keep.log", False)


def test_character_class() -> None:
    """TC-11: Bracket expressions match a single character."""
    rules = parse_ignore_lines(["file[0-9].txt", "tmp[!a].bin"])
    assert rules.is_ignored("file7.txt", False)
    assert not rules.is_ignored("fileX.txt", False)
    assert rules.is_ignored("tmpb.bin", False)
    assert not rules.is_ignored("tmpa.bin", False)


# -----------------------------------------------------------------------------
# LOADING
# -----------------------------------------------------------------------------

def test_missing_ignore_file_yields_no_rules(tmp_path: Path) -> None:
    """TC-12: Without a .gitignore there is nothing to filter."""
    assert load_ignore_rules(str(tmp_path)) is None


def test_undecodable_ignore_file_fails_open(tmp_path: Path) -> None:
    """TC-13: An undecodable file is treated as absent."""
    (tmp_path / ".gitignore").write_bytes(b"\xff\xfe\x00bad")
    assert load_ignore_rules(str(tmp_path)) is None


def test_load_ignore_rules_reads_root_file(tmp_path: Path) -> None:
    """TC-14: Rules are read in order from the root file."""
    (tmp_path / ".gitignore").write_text("# deps\nnode_modules/\n*.pyc\n", encoding="utf-8")
    rules = load_ignore_rules(str(tmp_path))
    assert rules is not None
    assert len(rules) == 2
    assert rules.is_ignored("node_modules", True)
