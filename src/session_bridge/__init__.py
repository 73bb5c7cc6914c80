"""session-bridge: one logical session over federated and local identities.

A SessionCoordinator merges the live identity reported by a federated
OAuth-style provider with a locally registered account, persists the local
half across restarts, and exposes a single logged-in view to the application.
"""

__version__ = "0.1.0"
