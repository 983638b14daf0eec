from __future__ import annotations

"""
HTML Block Extractor.

Parses an HTML document with BeautifulSoup and selects repeating elements
through compiled CSS selectors (soupsieve). Each selected item yields one
prompt unit whose id and body are resolved from optional descendant
selectors, with positional ids as the fallback.
"""

import logging
from typing import List, Optional, Union

import soupsieve
from bs4 import BeautifulSoup
from bs4.element import Tag

from ragutil.domain.constants import DEFAULT_ID_ATTRIBUTE
from ragutil.domain.errors import SelectorError
from ragutil.domain.models import DomConfig, PromptUnit
from ragutil.infra.fs import read_text_lossy

logger = logging.getLogger(__name__)

HTML_PARSER = "html.parser"

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def extract_html_blocks(
        path: str,
        item_selector: Union[str, DomConfig],
        id_selector: Optional[str] = None,
        id_attribute: str = DEFAULT_ID_ATTRIBUTE,
        description_selector: Optional[str] = None,
) -> List[PromptUnit]:
    """
    Read an HTML file and extract one prompt unit per selected item.

    Args:
        path: HTML file path (decoded as UTF-8, invalid bytes replaced).
        item_selector: CSS selector of the items, or a full DomConfig.
        id_selector: Optional selector of the descendant carrying the id.
        id_attribute: Attribute preferred as the id value.
        description_selector: Optional selector of the body descendants.

    Returns:
        List[PromptUnit]: Units in document order, empty bodies dropped.

    Raises:
        NotFoundError: If the file does not exist.
        IoError: If the file cannot be read.
        SelectorError: If any selector cannot be parsed.
    """
    if isinstance(item_selector, DomConfig):
        config = item_selector
    else:
        config = DomConfig(
            item_selector=item_selector,
            id_selector=id_selector,
            id_attribute=id_attribute or DEFAULT_ID_ATTRIBUTE,
            description_selector=description_selector,
        )

    html = read_text_lossy(path)
    units = extract_from_markup(html, config)
    logger.info(f"Extracted {len(units)} HTML blocks from {path}")
    return units


def extract_from_markup(html: str, config: DomConfig) -> List[PromptUnit]:
    """
    Extract prompt units from already-loaded markup.

    Raises:
        SelectorError: If any selector cannot be parsed.
    """
    if not config.item_selector or not config.item_selector.strip():
        raise SelectorError("item", config.item_selector or "", "empty selector")

    item_sel = _compile("item", config.item_selector)
    id_sel = _compile_optional("id", config.id_selector)
    desc_sel = _compile_optional("description", config.description_selector)

    soup = BeautifulSoup(html, HTML_PARSER)
    units: List[PromptUnit] = []

    for i, item in enumerate(item_sel.select(soup)):
        fallback_id = str(i + 1)
        unit_id = _resolve_id(item, id_sel, config.id_attribute, fallback_id)
        body = _resolve_body(item, desc_sel)
        if not body:
            logger.debug(f"Dropping item {fallback_id}: empty body")
            continue
        units.append(PromptUnit(id=unit_id, body=body))

    return units

# -----------------------------------------------------------------------------
# RESOLUTION RULES
# -----------------------------------------------------------------------------

def _resolve_id(item: Tag, id_sel, attribute: str, fallback: str) -> str:
    """
    Resolve an item's id.

    With an id selector: its first match's attribute, else that match's
    text, else the position. Without one: the item's own attribute, else
    the position.
    """
    if id_sel is None:
        value = _attribute(item, attribute)
        return fallback if value is None else value

    node = id_sel.select_one(item)
    if node is None:
        return fallback

    value = _attribute(node, attribute)
    if value is not None:
        return value
    text = node.get_text().strip()
    return text or fallback


def _resolve_body(item: Tag, desc_sel) -> str:
    if desc_sel is not None:
        parts = [t for t in (n.get_text().strip() for n in desc_sel.select(item)) if t]
        if parts:
            return "\n".join(parts)
    return item.get_text().strip()


def _attribute(element: Tag, name: str) -> Optional[str]:
    value = element.get(name)
    if value is None:
        return None
    # Multi-valued attributes such as class come back as lists
    if isinstance(value, list):
        return " ".join(value)
    return value

# -----------------------------------------------------------------------------
# SELECTOR COMPILATION
# -----------------------------------------------------------------------------

def _compile(which: str, selector: str):
    try:
        return soupsieve.compile(selector)
    except (soupsieve.SelectorSyntaxError, NotImplementedError) as e:
        raise SelectorError(which, selector, str(e).splitlines()[0] if str(e) else "") from e


def _compile_optional(which: str, selector: Optional[str]):
    if selector is None or not selector.strip():
        return None
    return _compile(which, selector)
