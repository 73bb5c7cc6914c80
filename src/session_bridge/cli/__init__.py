"""Command-line interface for session-bridge.

Provides commands for registering and signing in local accounts, signing in
through the federated provider, and inspecting configuration.
"""

from .main import cli, main

__all__ = ["cli", "main"]
