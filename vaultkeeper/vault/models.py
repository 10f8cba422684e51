"""
Credential data models.

``CredentialFields`` is what a user edits (plaintext secret, transient).
``CredentialRecord`` is what the record store holds (ciphertext only).
"""
import uuid
from typing import Optional, Any
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _strip_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class CredentialFields(BaseModel):
    """Form fields of a credential, secret in plaintext.

    Unknown keys (``user_id``, ``id``, ``created_at``...) are ignored, so an
    owner can never be injected through form input.
    """

    title: str
    username: str
    secret: str = Field(default="", repr=False)
    url: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("title", "username")
    @classmethod
    def required(cls, v: str) -> str:
        """Reject empty or whitespace-only values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("url")
    @classmethod
    def clean_url(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v


class CredentialRecord(BaseModel):
    """A persisted credential. ``secret_ciphertext`` is always an envelope."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    title: str
    username: str
    secret_ciphertext: str
    url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)

    model_config = {"frozen": True}

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def mutable_fields(self) -> dict[str, Any]:
        """Fields replaced by a full-field update."""
        return {name: getattr(self, name) for name in UPDATABLE_FIELDS}


UPDATABLE_FIELDS = ("title", "username", "secret_ciphertext", "url", "notes")
