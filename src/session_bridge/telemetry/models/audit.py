"""Audit log record models (audit/auth.jsonl)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SubjectIdentity(BaseModel):
    """Identity a session event is about.

    Attributes:
        subject_id: Normalized email for local identities, provider id for
            federated ones.
        source: Which identity source asserted it.
        display_name: Display name at the time of the event.
    """

    subject_id: str
    source: Literal["local", "federated"]
    display_name: str | None = None


class AuthEvent(BaseModel):
    """One authentication audit entry.

    Secrets are never part of an event.
    """

    model_config = ConfigDict(extra="forbid")

    time: str | None = Field(
        None,
        description="ISO 8601 timestamp, added by formatter during serialization",
    )
    event_type: Literal[
        "local_registered",
        "local_sign_in",
        "federated_sign_in",
        "federated_sign_out",
        "logged_out",
        "session_restored",
        "session_discarded",
    ]
    status: Literal["Success", "Failure"]

    subject: SubjectIdentity | None = None

    message: str | None = None
    error_type: str | None = None  # error code, e.g. "wrong_secret"
    error_message: str | None = None

    details: dict[str, Any] | None = None
