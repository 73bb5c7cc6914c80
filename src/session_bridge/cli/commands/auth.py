"""Session commands for session-bridge CLI.

Commands:
    auth register - Create a local account and sign it in
    auth login    - Sign in (local account or --federated)
    auth logout   - End the current session
    auth status   - Show the merged session
    auth users    - List registered local accounts
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import click

from session_bridge.coordinator import AuthResult, SessionCoordinator, create_session_coordinator
from session_bridge.identity.registry import CredentialRegistry
from session_bridge.storage.kv import create_storage, get_storage_info

from ._common import echo_notification, load_config

T = TypeVar("T")


def _run(operation: Callable[[SessionCoordinator], Awaitable[T]]) -> T:
    """Start a coordinator, run operation against it, and dispose it."""
    coordinator = create_session_coordinator(load_config(), notifier=echo_notification)

    async def runner() -> T:
        async with coordinator:
            return await operation(coordinator)

    return asyncio.run(runner())


def _report(result: AuthResult, success_message: str) -> None:
    if not result.success:
        raise click.ClickException(result.error or "Operation failed.")
    click.echo(click.style(success_message, fg="green", bold=True))


@click.group()
def auth() -> None:
    """Session commands."""
    pass


@auth.command()
@click.argument("name")
@click.argument("email")
@click.password_option("--password", "secret", help="Account password (prompted if omitted)")
def register(name: str, email: str, secret: str) -> None:
    """Create a local account and sign it in."""

    async def operation(coordinator: SessionCoordinator) -> AuthResult:
        return coordinator.register(name, email, secret)

    result = _run(operation)
    _report(result, f"Registered and signed in as {name}.")


@auth.command()
@click.argument("email", required=False)
@click.option("--password", "secret", help="Account password (prompted if omitted)")
@click.option("--federated", is_flag=True, help="Sign in through the federated provider")
def login(email: str | None, secret: str | None, federated: bool) -> None:
    """Sign in with a local account, or through the federated provider.

    The federated flow is interactive and runs until the provider completes
    or fails it.
    """
    if federated:
        if email is not None:
            raise click.UsageError("EMAIL cannot be combined with --federated.")

        async def federated_operation(coordinator: SessionCoordinator) -> tuple[AuthResult, str | None]:
            result = await coordinator.sign_in_federated()
            return result, coordinator.user_name

        result, user_name = _run(federated_operation)
        _report(result, f"Signed in as {user_name or 'federated user'}.")
        return

    if email is None:
        raise click.UsageError("EMAIL is required unless --federated is given.")
    if secret is None:
        secret = click.prompt("Password", hide_input=True)

    async def local_operation(coordinator: SessionCoordinator) -> tuple[AuthResult, str | None]:
        result = coordinator.sign_in_local(email, secret)
        return result, coordinator.user_name

    result, user_name = _run(local_operation)
    _report(result, f"Signed in as {user_name}.")


@auth.command()
def logout() -> None:
    """End the current session (local and federated)."""

    async def operation(coordinator: SessionCoordinator) -> None:
        await coordinator.log_out()

    _run(operation)
    click.echo("Logged out.")


@auth.command()
def status() -> None:
    """Show the merged session."""

    async def operation(coordinator: SessionCoordinator) -> SessionCoordinator:
        return coordinator

    coordinator = _run(operation)
    view = coordinator.snapshot()

    if not view.is_logged_in:
        click.echo(click.style("Not signed in", fg="yellow"))
        return

    click.echo(click.style("Signed in", fg="green", bold=True))
    click.echo(f"  Name:   {view.display_name or '(none)'}")
    if coordinator.federated_identity is not None:
        identity = coordinator.federated_identity
        click.echo("  Source: federated")
        if identity.email:
            click.echo(f"  Email:  {identity.email}")
        if identity.provider_id:
            click.echo(f"  Provider: {identity.provider_id}")
    elif coordinator.local_session is not None:
        click.echo("  Source: local")
        click.echo(f"  Email:  {coordinator.local_session.email}")


@auth.command()
def users() -> None:
    """List registered local accounts."""
    config = load_config()
    storage = create_storage(config.storage)
    identities = CredentialRegistry(storage).list_identities()

    info = get_storage_info(storage)
    location = info.get("location", info["backend"])
    if not identities:
        click.echo(f"No registered accounts ({location}).")
        return

    click.echo(f"Registered accounts ({location}):")
    for identity in identities:
        click.echo(f"  {identity.name} <{identity.email}>")
