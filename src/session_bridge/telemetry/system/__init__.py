"""System/operational logging."""

from session_bridge.telemetry.system.system_logger import (
    configure_system_logger,
    get_system_logger,
)

__all__ = [
    "configure_system_logger",
    "get_system_logger",
]
