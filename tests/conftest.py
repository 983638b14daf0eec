from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures for configuration dictionaries and sample documents.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_config_dict() -> Dict[str, Any]:
    """
    Return a valid, complete configuration dictionary for testing.

    Reflects the structure defined in 'ragutil.domain.config'.

    Returns:
        Dict[str, Any]: A sample configuration dictionary.
    """
    return {
        # Remote extraction
        "units_endpoint": "https://extract.test/units",
        "table_endpoint": "https://extract.test/table",
        "api_headers": {"X-Api-Key": "secret"},
        "default_which": "items",

        # Local extraction
        "max_read_bytes": 512 * 1024,
        "id_attribute": "id",

        # Diagnostics
        "log_level": "INFO",
    }


@pytest.fixture
def write_text(tmp_path: Path):
    """Return a helper writing UTF-8 text files under tmp_path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
