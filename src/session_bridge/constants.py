"""Application-wide constants for session-bridge.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

import os

from platformdirs import user_config_dir, user_data_dir

# ============================================================================
# Application Directories
# ============================================================================

APP_NAME: str = "session-bridge"

# Platform-specific paths:
# - macOS: ~/Library/Application Support/session-bridge/
# - Linux: ~/.config/session-bridge/ (config), ~/.local/share/session-bridge/ (data)
# - Windows: %APPDATA%\session-bridge\
#
# Resolved with os.path.realpath() so symlinked homes compare equal.
CONFIG_DIR: str = os.path.realpath(user_config_dir(APP_NAME))
DEFAULT_STORAGE_DIR: str = os.path.realpath(user_data_dir(APP_NAME))

CONFIG_FILE_NAME: str = "session_bridge_config.json"

# Log subdirectory created inside the user-specified log_dir
LOG_SUBDIR_NAME: str = "session_bridge_logs"

# ============================================================================
# Persisted State Keys
# ============================================================================

# JSON array of {name, email, secret}
REGISTERED_USERS_KEY: str = "registered_users"

# JSON object {displayName, email, avatarUrl?}
ACTIVE_SESSION_KEY: str = "active_session"

# Keys become file names in FileKeyValueStorage
STORAGE_FILE_SUFFIX: str = ".json"

# ============================================================================
# User-Facing Messages
# ============================================================================

DUPLICATE_EMAIL_MESSAGE: str = "An account with this email already exists. Please sign in."
NO_SUCH_ACCOUNT_MESSAGE: str = "No account found with this email. Please sign up first."
WRONG_SECRET_MESSAGE: str = "Incorrect password. Please try again."
PROVIDER_NOT_CONFIGURED_MESSAGE: str = (
    "Federated authentication is not configured. "
    "Set 'federated.provider' in the session-bridge config to enable it."
)
