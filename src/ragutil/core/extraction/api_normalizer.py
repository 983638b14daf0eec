from __future__ import annotations

"""
JSON Response Normalizer.

Locates the array of flat objects inside an arbitrary JSON response and
projects it onto a rectangular table of strings. Array discovery is an
ordered sequence of independent rules; the first rule returning a
non-empty set of objects wins.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ragutil.domain.constants import TABLE_KEY_PREFERENCE
from ragutil.domain.errors import NoTableFoundError
from ragutil.domain.models import ApiTable

logger = logging.getLogger(__name__)

Records = List[Dict[str, Any]]
DiscoveryRule = Callable[[Any], Optional[Records]]

# -----------------------------------------------------------------------------
# DISCOVERY RULES
# -----------------------------------------------------------------------------

def _objects_in(value: Any) -> Optional[Records]:
    """Return the object elements of an array, or None when there are none."""
    if not isinstance(value, list):
        return None
    objects = [v for v in value if isinstance(v, dict)]
    return objects or None


def root_array_rule(value: Any) -> Optional[Records]:
    """The response itself is the array."""
    return _objects_in(value)


def known_key_rule(value: Any) -> Optional[Records]:
    """The array sits under one of the conventional keys, in preference order."""
    if not isinstance(value, dict):
        return None
    for key in TABLE_KEY_PREFERENCE:
        found = _objects_in(value.get(key))
        if found:
            return found
    return None


def any_value_rule(value: Any) -> Optional[Records]:
    """The array is any top-level value of the object."""
    if not isinstance(value, dict):
        return None
    for v in value.values():
        found = _objects_in(v)
        if found:
            return found
    return None


DISCOVERY_RULES: Tuple[DiscoveryRule, ...] = (
    root_array_rule,
    known_key_rule,
    any_value_rule,
)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def find_records(value: Any) -> Optional[Records]:
    """Apply the discovery rules in order and return the first hit."""
    for rule in DISCOVERY_RULES:
        found = rule(value)
        if found:
            logger.debug(f"Record array located by {rule.__name__} ({len(found)} objects)")
            return found
    return None


def normalize(value: Any) -> ApiTable:
    """
    Flatten a JSON response into an ApiTable.

    Args:
        value: Decoded JSON value.

    Returns:
        ApiTable: Sorted column union and one padded row per object.

    Raises:
        NoTableFoundError: If no array of objects can be located.
    """
    records = find_records(value)
    if records is None:
        raise NoTableFoundError("No array of objects in API response")

    columns = sorted({key for record in records for key in record})
    rows = [
        {col: stringify_value(record[col]) if col in record else "" for col in columns}
        for record in records
    ]
    return ApiTable(columns=columns, rows=rows)


def stringify_value(value: Any) -> str:
    """
    Render a JSON value as table cell text.

    null is empty, booleans are 'true'/'false', numbers and nested values
    use their compact JSON form, strings are unchanged.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
