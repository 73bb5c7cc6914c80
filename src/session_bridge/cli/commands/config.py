"""Configuration commands for session-bridge CLI.

Commands:
    config path - Show config file path
    config show - Display the effective configuration
"""

from __future__ import annotations

import json

import click

from session_bridge.utils.config import get_config_path

from ._common import load_config


@click.group()
def config() -> None:
    """Configuration commands."""
    pass


@config.command()
def path() -> None:
    """Show config file path."""
    config_path = get_config_path()
    click.echo(str(config_path))
    if not config_path.exists():
        click.echo(click.style("(file does not exist; defaults apply)", fg="yellow"), err=True)


@config.command()
def show() -> None:
    """Display the effective configuration as JSON."""
    app_config = load_config()
    click.echo(json.dumps(app_config.model_dump(), indent=2))
