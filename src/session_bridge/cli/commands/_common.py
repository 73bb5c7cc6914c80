"""Helpers shared by CLI commands."""

from __future__ import annotations

import click

from session_bridge.config import AppConfig
from session_bridge.utils.config import get_config_path


def load_config() -> AppConfig:
    """Load configuration from the default path, or defaults if absent.

    Raises:
        click.ClickException: If the config file exists but is invalid.
    """
    config_path = get_config_path()
    try:
        return AppConfig.load_or_default(config_path)
    except ValueError as e:
        raise click.ClickException(f"Failed to load configuration: {e}") from e


def echo_notification(message: str) -> None:
    """Notifier for the coordinator: a visible warning on stderr."""
    click.secho(message, fg="yellow", err=True)
