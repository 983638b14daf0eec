from __future__ import annotations

"""
Unit tests for the HTML Block Extractor.

Verifies id resolution (attribute, text, position), body resolution with
and without a description selector, empty-body dropping and selector error
reporting.
"""

from pathlib import Path

import pytest

from ragutil.core.extraction.dom import extract_from_markup, extract_html_blocks
from ragutil.domain.errors import SelectorError
from ragutil.domain.models import DomConfig

CATALOG_HTML = """
<html><body>
  <div class="entry" data-key="k1">
    <h2 class="code">A-100</h2>
    <p class="desc">First line</p>
    <p class="desc">   </p>
    <p class="desc">Second line</p>
  </div>
  <div class="entry">
    <h2 class="code" data-key="k2">B-200</h2>
    <span>Only span text</span>
  </div>
  <div class="entry">
    <h2 class="code">   </h2>
    <p class="desc">Third</p>
  </div>
  <div class="entry">   </div>
</body></html>
"""


def test_list_items_example(write_text) -> None:
    """TC-01: Items use their own id attribute, else their position."""
    path = write_text("list.html", '<li id="a1">hi</li><li>there</li>')

    units = extract_html_blocks(str(path), "li")

    assert [(u.id, u.body) for u in units] == [("a1", "hi"), ("2", "there")]


def test_id_selector_prefers_attribute_then_text() -> None:
    """TC-02: The id element's attribute wins over its text."""
    config = DomConfig(item_selector="div.entry", id_selector="h2.code", id_attribute="data-key")

    units = extract_from_markup(CATALOG_HTML, config)

    assert [u.id for u in units] == ["A-100", "k2", "3"]


def test_without_id_selector_text_is_not_used() -> None:
    """TC-03: Without an id selector only the item attribute or position count."""
    config = DomConfig(item_selector="div.entry", id_attribute="data-key")

    units = extract_from_markup(CATALOG_HTML, config)

    assert [u.id for u in units] == ["k1", "2", "3"]


def test_description_selector_joins_non_empty_matches() -> None:
    """TC-04: Matching descendants join with newlines, blanks skipped."""
    config = DomConfig(item_selector="div.entry", description_selector="p.desc")

    units = extract_from_markup(CATALOG_HTML, config)

    assert units[0].body == "First line\nSecond line"
    assert units[2].body == "Third"


def test_description_fallback_to_item_text() -> None:
    """TC-05: Items without description matches use their full text."""
    config = DomConfig(item_selector="div.entry", description_selector="p.desc")

    units = extract_from_markup(CATALOG_HTML, config)

    assert "Only span text" in units[1].body
    assert units[1].body.startswith("B-200")


def test_empty_items_are_dropped() -> None:
    """TC-06: Items whose text is blank produce no unit."""
    units = extract_from_markup(CATALOG_HTML, DomConfig(item_selector="div.entry"))
    assert len(units) == 3


def test_blank_optional_selectors_are_ignored() -> None:
    """TC-07: Whitespace-only optional selectors behave as absent."""
    config = DomConfig(item_selector="li", id_selector="  ", description_selector="")
    units = extract_from_markup('<li id="x">one</li>', config)
    assert [(u.id, u.body) for u in units] == [("x", "one")]


def test_empty_attribute_value_is_used_as_id() -> None:
    """TC-08: A present but empty attribute still counts as the id."""
    units = extract_from_markup('<li id="">one</li>', DomConfig(item_selector="li"))
    assert units[0].id == ""


def test_multi_valued_attribute_is_joined() -> None:
    """TC-09: Multi-valued attributes such as class join with spaces."""
    config = DomConfig(item_selector="li", id_attribute="class")
    units = extract_from_markup('<li class="a b">one</li>', config)
    assert units[0].id == "a b"


@pytest.mark.parametrize("field,kwargs", [
    ("item", {"item_selector": "li[", "id_selector": None}),
    ("id", {"item_selector": "li", "id_selector": "span[["}),
    ("description", {"item_selector": "li", "description_selector": "p[x="}),
])
def test_invalid_selector_identifies_role(field: str, kwargs) -> None:
    """TC-10: Selector errors name the selector that failed to parse."""
    with pytest.raises(SelectorError) as exc_info:
        extract_from_markup("<li>x</li>", DomConfig(**kwargs))
    assert exc_info.value.which == field


def test_blank_item_selector_is_rejected() -> None:
    """TC-11: The item selector is mandatory."""
    with pytest.raises(SelectorError):
        extract_from_markup("<li>x</li>", DomConfig(item_selector="  "))


def test_extract_reads_file_with_config(tmp_path: Path) -> None:
    """TC-12: A DomConfig can replace the positional arguments."""
    path = tmp_path / "page.html"
    path.write_text("<ul><li data-n='7'>seven</li></ul>", encoding="utf-8")

    units = extract_html_blocks(str(path), DomConfig(item_selector="ul > li", id_attribute="data-n"))

    assert [(u.id, u.body) for u in units] == [("7", "seven")]
