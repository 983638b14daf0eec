from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of user preferences (extraction endpoints,
request headers, read limits) as JSON in the user data directory, with a
default fallback whenever the file is missing or corrupted.
"""

import json
import logging
import os
from typing import Any, Dict

from ragutil.domain.constants import (
    CURRENT_CONFIG_VERSION,
    DEFAULT_ID_ATTRIBUTE,
    DEFAULT_MAX_READ_BYTES,
)
from ragutil.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"


def get_config_path() -> str:
    """Resolve the absolute path of the persisted configuration file."""
    return os.path.join(get_user_data_dir(), CONFIG_FILE_NAME)

# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------

def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Remote extraction
        "units_endpoint": "",
        "table_endpoint": "",
        "api_headers": {},
        "default_which": "items",

        # Local extraction
        "max_read_bytes": DEFAULT_MAX_READ_BYTES,
        "id_attribute": DEFAULT_ID_ATTRIBUTE,

        # Diagnostics
        "log_level": "INFO",
    }

# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------

def load_config(path: str = "") -> Dict[str, Any]:
    """
    Load the configuration from disk, merged over the defaults.

    Args:
        path: Optional explicit file location (defaults to the user data dir).

    Returns:
        Dict[str, Any]: The loaded configuration or defaults on failure.
    """
    config_path = path or get_config_path()
    config = get_default_config()

    if not os.path.exists(config_path):
        logger.debug("Config file not found. Returning defaults.")
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Using defaults.")
        return config

    data.pop("version", None)
    config.update(data)
    return config


def save_config(config: Dict[str, Any], path: str = "") -> None:
    """
    Persist the configuration to disk with the current version stamp.

    Args:
        config: The configuration dictionary to save.
        path: Optional explicit file location (defaults to the user data dir).
    """
    config_path = path or get_config_path()
    payload = dict(config)
    payload["version"] = CURRENT_CONFIG_VERSION
    try:
        os.makedirs(os.path.dirname(os.path.abspath(config_path)), exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {config_path}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")
