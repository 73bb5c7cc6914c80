"""Main CLI entry point for session-bridge.

Defines the CLI group and registers all subcommands.

Commands:
    auth    - Session commands (register, login, logout, status, users)
    config  - Configuration commands
        show - Display current configuration
        path - Show config file path

Usage:
    session-bridge -h, --help               Show help message
    session-bridge -v, --version            Show version
    session-bridge auth register NAME EMAIL Create a local account
    session-bridge auth login EMAIL         Sign in with a local account
    session-bridge auth login --federated   Sign in through the provider
    session-bridge auth logout              End the current session
    session-bridge auth status              Show who is signed in
    session-bridge config show              Display configuration
"""

import sys

import click

from session_bridge import __version__

from .commands.auth import auth
from .commands.config import config


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  session-bridge auth register "Ann" ann@example.com   Create an account (prompts for password)
  session-bridge auth status                           Show the merged session

Federated sign-in needs 'federated.provider' in the config file
(see 'session-bridge config path').
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """session-bridge: one session over federated and local accounts."""
    if version:
        click.echo(f"session-bridge {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(auth)
cli.add_command(config)


def main() -> None:
    """CLI entry point."""
    cli()
