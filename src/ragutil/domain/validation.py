from __future__ import annotations

"""
Configuration Validation Service.

Ensures that a configuration dictionary loaded from disk or assembled from
CLI overrides conforms to the expected schema. Handles type coercion and
default value injection, collecting human-readable warnings instead of
failing unless strict mode is requested.
"""

import logging
from typing import Any, Dict, List, Tuple

from ragutil.domain.config import get_default_config

logger = logging.getLogger(__name__)

_STRING_FIELDS = ("units_endpoint", "table_endpoint", "default_which", "id_attribute", "log_level")
_WHICH_VALUES = ("items", "notes")


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize the provided configuration dictionary.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raises TypeError/ValueError instead of coercing.

    Returns:
        Tuple[Dict[str, Any], List[str]]: Normalized configuration and warnings.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(config)

    for field in _STRING_FIELDS:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    merged["max_read_bytes"] = _as_positive_int(
        merged.get("max_read_bytes"), defaults["max_read_bytes"], "max_read_bytes", warnings, strict
    )
    merged["api_headers"] = _as_headers(merged.get("api_headers"), warnings, strict)

    which = merged["default_which"].lower()
    if which not in _WHICH_VALUES:
        msg = f"Invalid field 'default_which': expected one of {_WHICH_VALUES}, received '{which}'."
        if strict:
            raise ValueError(msg)
        warnings.append(f"{msg} Using fallback.")
        which = defaults["default_which"]
    merged["default_which"] = which

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        return value.strip()

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_positive_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Coerce numeric-looking input into a strictly positive int."""
    if isinstance(value, bool):
        value = None
    if isinstance(value, int) and value > 0:
        return value

    if not strict and isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        warnings.append(f"Field '{field}' converted from '{value}' to int.")
        return int(value)

    msg = f"Invalid field '{field}': expected positive int, received {value!r}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_headers(value: Any, warnings: List[str], strict: bool) -> Dict[str, str]:
    """Ensure extra request headers form a flat str -> str mapping."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"Invalid field 'api_headers': expected dict, received {type(value).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using fallback.")
        return {}

    out: Dict[str, str] = {}
    for k, v in value.items():
        if isinstance(k, str) and isinstance(v, (str, int, float)) and not isinstance(v, bool):
            out[k] = str(v)
        else:
            msg = f"Invalid header '{k}' in 'api_headers'."
            if strict:
                raise TypeError(msg)
            warnings.append(f"{msg} Header discarded.")
    return out
