"""Application configuration for session-bridge.

Defines configuration models for storage, logging, and the federated
provider. The config file lives at the OS-appropriate location (via
platformdirs); when it is missing, defaults apply and federated sign-in is
unconfigured.

Example usage:
    # Load from config file (defaults if absent)
    config = AppConfig.load_or_default(get_config_path())

    # Save configuration
    config.save_to_file(config_path)
"""

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from session_bridge.constants import DEFAULT_STORAGE_DIR, LOG_SUBDIR_NAME
from session_bridge.utils.file_helpers import load_validated_json, require_file_exists


# =============================================================================
# Storage Configuration
# =============================================================================


class StorageConfig(BaseModel):
    """Durable key/value storage settings.

    Attributes:
        backend: "file" persists one JSON file per key under directory;
            "memory" keeps state for the lifetime of the process only.
        directory: Directory for the file backend.
    """

    backend: Literal["file", "memory"] = "file"
    directory: str = DEFAULT_STORAGE_DIR


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    When log_dir is set, logs are stored in a session_bridge_logs/
    subdirectory with this structure:
        <log_dir>/
        └── session_bridge_logs/
            ├── system/
            │   └── system.jsonl
            └── audit/
                └── auth.jsonl

    Without log_dir, system warnings go to stderr and audit events are
    discarded.

    Attributes:
        log_dir: Base directory for logs (optional).
        log_level: Level for system.jsonl (DEBUG or INFO).
    """

    log_dir: str | None = None
    log_level: Literal["DEBUG", "INFO"] = "INFO"


# =============================================================================
# Federated Provider Configuration
# =============================================================================


class FederatedConfig(BaseModel):
    """Federated identity provider settings.

    The provider is loaded from an import reference of the form
    "package.module:factory". The factory is called with options as keyword
    arguments and must return a FederatedIdentityProvider.

    Attributes:
        provider: Import reference, or None when federated sign-in is not
            configured.
        options: Keyword arguments for the factory.
    """

    provider: str | None = Field(default=None, pattern=r"^[\w.]+:[\w.]+$")
    options: dict[str, Any] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """Main application configuration for session-bridge.

    Attributes:
        storage: Where registered users and the active session are persisted.
        logging: Logging configuration.
        federated: Federated provider configuration.
    """

    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    federated: FederatedConfig = Field(default_factory=FederatedConfig)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist.
        Sets secure permissions (0o700) on the config directory.

        Args:
            config_path: Path where session_bridge_config.json should be saved.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.parent.chmod(0o700)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)

        config_path.chmod(0o600)

    @classmethod
    def load_from_files(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config file.

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config file is invalid.
        """
        require_file_exists(config_path, file_type="configuration")
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint="Fix the file or delete it to fall back to defaults.",
            encoding="utf-8",
        )

    @classmethod
    def load_or_default(cls, config_path: Path) -> "AppConfig":
        """Load configuration, or return defaults if the file doesn't exist.

        Raises:
            ValueError: If the file exists but is invalid.
        """
        if not config_path.exists():
            return cls()
        return cls.load_from_files(config_path)


def get_log_root(config: AppConfig) -> Path | None:
    """Return <log_dir>/session_bridge_logs, or None if logging to files is off."""
    if config.logging.log_dir is None:
        return None
    return Path(config.logging.log_dir).expanduser() / LOG_SUBDIR_NAME


def get_auth_log_path(config: AppConfig) -> Path | None:
    """Return the audit/auth.jsonl path, or None."""
    root = get_log_root(config)
    return None if root is None else root / "audit" / "auth.jsonl"


def get_system_log_path(config: AppConfig) -> Path | None:
    """Return the system/system.jsonl path, or None."""
    root = get_log_root(config)
    return None if root is None else root / "system" / "system.jsonl"
