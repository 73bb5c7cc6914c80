"""Validation utilities for session-bridge.

Provides reusable normalization for identity values.
"""

from __future__ import annotations

__all__ = [
    "emails_match",
    "normalize_email",
]


def normalize_email(value: str) -> str:
    """Normalize an email address for uniqueness comparisons.

    Surrounding whitespace is stripped and the address lowercased.
    No syntactic validation is performed.

    Example:
        >>> normalize_email("  Ann@X.com ")
        'ann@x.com'
    """
    return value.strip().lower()


def emails_match(left: str, right: str) -> bool:
    """Case-insensitive comparison of two email addresses."""
    return normalize_email(left) == normalize_email(right)
