"""Local identity models.

Field names on disk follow the persisted JSON format:
- registered_users: [{"name", "email", "secret"}, ...]
- active_session: {"displayName", "email", "avatarUrl"?}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RegisteredIdentity(BaseModel):
    """A locally registered account.

    Immutable once created. The email is stored normalized and is the
    registry's unique key.

    Note: the secret is stored and compared as plaintext. Hashing it would
    change the stored-data format, so it is tracked as an open issue rather
    than changed here.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    secret: str = Field(repr=False)


class LocalSession(BaseModel):
    """The active session derived from a RegisteredIdentity."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    display_name: str = Field(alias="displayName")
    email: str
    avatar_url: str | None = Field(default=None, alias="avatarUrl")

    @classmethod
    def from_identity(cls, identity: RegisteredIdentity) -> "LocalSession":
        """Derive a session from a registered identity (no avatar)."""
        return cls(display_name=identity.name, email=identity.email)

    def to_json(self) -> str:
        """Serialize to the persisted camelCase JSON shape."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, data: str) -> "LocalSession":
        """Deserialize from persisted JSON.

        Raises:
            pydantic.ValidationError: If data is not a valid session document.
        """
        return cls.model_validate_json(data)
