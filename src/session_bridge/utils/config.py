"""Config path resolution."""

from __future__ import annotations

import os
from pathlib import Path

from session_bridge.constants import CONFIG_DIR, CONFIG_FILE_NAME

# Overrides the config location (tests, multiple profiles)
CONFIG_PATH_ENV_VAR = "SESSION_BRIDGE_CONFIG"


def get_config_dir() -> Path:
    """Return the OS-appropriate config directory."""
    return Path(CONFIG_DIR)


def get_config_path() -> Path:
    """Return the config file path, honoring SESSION_BRIDGE_CONFIG.

    Returns:
        Path to session_bridge_config.json.
    """
    override = os.environ.get(CONFIG_PATH_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / CONFIG_FILE_NAME
