"""Telemetry: system logging and authentication audit trail."""
