"""Logging setup helpers (JSONL formatting, handlers)."""
