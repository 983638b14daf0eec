from __future__ import annotations

"""
Unit tests for the Configuration domain and its validation service.

Verifies:
1. Default configuration generation.
2. Load/save persistence against a temporary user data dir.
3. Resilience against corrupted files.
4. Type coercion, header sanitization and strict mode.
"""

import json
from unittest.mock import patch

import pytest

from ragutil.domain.config import get_default_config, load_config, save_config
from ragutil.domain.constants import CURRENT_CONFIG_VERSION
from ragutil.domain.validation import validate_config


@pytest.fixture
def mock_user_data_dir(tmp_path):
    """Redirect the user data directory so real preferences are never touched."""
    config_dir = tmp_path / "ragutil"
    config_dir.mkdir()
    with patch("ragutil.domain.config.get_user_data_dir", return_value=str(config_dir)):
        yield config_dir

# -----------------------------------------------------------------------------
# PERSISTENCE
# -----------------------------------------------------------------------------

def test_missing_file_returns_defaults(mock_user_data_dir) -> None:
    """TC-01: A fresh install loads the default configuration."""
    assert load_config() == get_default_config()


def test_save_then_load_round_trip(mock_user_data_dir, mock_config_dict) -> None:
    """TC-02: Saved values are restored and the version stamp is stripped."""
    save_config(mock_config_dict)

    on_disk = json.loads((mock_user_data_dir / "config.json").read_text(encoding="utf-8"))
    assert on_disk["version"] == CURRENT_CONFIG_VERSION

    loaded = load_config()
    assert loaded == mock_config_dict
    assert "version" not in loaded


def test_corrupted_file_returns_defaults(mock_user_data_dir) -> None:
    """TC-03: Malformed JSON falls back to defaults."""
    (mock_user_data_dir / "config.json").write_text("{ not json", encoding="utf-8")
    assert load_config() == get_default_config()


def test_non_object_file_returns_defaults(mock_user_data_dir) -> None:
    """TC-04: A JSON document that is not an object is ignored."""
    (mock_user_data_dir / "config.json").write_text("[1, 2]", encoding="utf-8")
    assert load_config() == get_default_config()


def test_partial_file_is_merged_over_defaults(tmp_path) -> None:
    """TC-05: Keys missing from an explicit file keep their default values."""
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"units_endpoint": "https://x.test/u"}), encoding="utf-8")

    config = load_config(str(path))

    assert config["units_endpoint"] == "https://x.test/u"
    assert config["default_which"] == "items"

# -----------------------------------------------------------------------------
# VALIDATION
# -----------------------------------------------------------------------------

def test_valid_config_has_no_warnings(mock_config_dict) -> None:
    """TC-06: A complete valid configuration passes unchanged."""
    clean, warnings = validate_config(mock_config_dict)
    assert warnings == []
    assert clean == mock_config_dict


def test_non_dict_returns_defaults() -> None:
    """TC-07: Non-dict input is replaced by the defaults with a warning."""
    clean, warnings = validate_config(["bad"])
    assert clean == get_default_config()
    assert len(warnings) == 1


def test_numeric_string_is_coerced() -> None:
    """TC-08: A digit string read limit is converted with a warning."""
    clean, warnings = validate_config({"max_read_bytes": " 2048 "})
    assert clean["max_read_bytes"] == 2048
    assert any("converted" in w for w in warnings)


@pytest.mark.parametrize("value", [0, -5, True, "abc", 1.5])
def test_invalid_read_limit_falls_back(value) -> None:
    """TC-09: Non-positive, boolean or non-integral limits use the default."""
    clean, warnings = validate_config({"max_read_bytes": value})
    assert clean["max_read_bytes"] == get_default_config()["max_read_bytes"]
    assert warnings


def test_strings_are_trimmed_and_wrong_types_replaced() -> None:
    """TC-10: String fields are stripped; non-strings fall back."""
    clean, warnings = validate_config({"units_endpoint": "  https://u.test  ", "id_attribute": 5})
    assert clean["units_endpoint"] == "https://u.test"
    assert clean["id_attribute"] == "id"
    assert len(warnings) == 1


def test_headers_are_sanitized() -> None:
    """TC-11: Scalar header values are stringified, others discarded."""
    clean, warnings = validate_config({"api_headers": {"A": "x", "B": 3, "C": None, "D": True}})
    assert clean["api_headers"] == {"A": "x", "B": "3"}
    assert len(warnings) == 2


def test_default_which_is_normalized() -> None:
    """TC-12: The response list name is case-folded and restricted."""
    assert validate_config({"default_which": "NOTES"})[0]["default_which"] == "notes"
    clean, warnings = validate_config({"default_which": "rows"})
    assert clean["default_which"] == "items"
    assert warnings


def test_strict_mode_raises() -> None:
    """TC-13: Strict validation refuses instead of coercing."""
    with pytest.raises(TypeError):
        validate_config("not a dict", strict=True)
    with pytest.raises(TypeError):
        validate_config({"max_read_bytes": "10"}, strict=True)
    with pytest.raises(ValueError):
        validate_config({"default_which": "rows"}, strict=True)
