"""
Vault Configuration — validated settings loaded from the environment.

Reads:
    VAULT_CIPHER_BACKEND = aesgcm | chacha20
    VAULT_MIN_MASTER_KEY_LENGTH = <integer>
    VAULT_GENERATOR_LENGTH = <integer>
    VAULT_SESSION_TTL = <seconds>

Security Note:
    Master keys are never part of configuration; they are supplied per
    session by the user and held only by ``VaultSession``.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..session import VaultSession, MIN_MASTER_KEY_LENGTH
from .generator import DEFAULT_LENGTH
from .crypto import version_for_backend
from .credential_vault import CredentialVault
from .store import RecordStore

logger = logging.getLogger("vaultkeeper.vault")


def _int_from_env(name: str) -> Optional[int]:
    """Read an integer environment variable.

    Raises:
        ValueError: If the value is set but is not a valid integer.
    """
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    cipher_backend: str = Field(default="aesgcm")
    min_master_key_length: int = Field(default=MIN_MASTER_KEY_LENGTH, ge=1, le=1024)
    generator_length: int = Field(default=DEFAULT_LENGTH, ge=1, le=4096)
    session_ttl: Optional[int] = Field(default=None, ge=60)

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        version_for_backend(v)
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        values = {
            "cipher_backend": os.environ.get("VAULT_CIPHER_BACKEND", "aesgcm"),
        }
        for field, env in (
            ("min_master_key_length", "VAULT_MIN_MASTER_KEY_LENGTH"),
            ("generator_length", "VAULT_GENERATOR_LENGTH"),
            ("session_ttl", "VAULT_SESSION_TTL"),
        ):
            value = _int_from_env(env)
            if value is not None:
                values[field] = value
        config = cls(**values)
        logger.debug(
            "Vault config loaded: backend=%s min_key=%d ttl=%s",
            config.cipher_backend, config.min_master_key_length, config.session_ttl,
        )
        return config

    def vault(self, store: RecordStore) -> CredentialVault:
        """Build a CredentialVault using the configured backend and generator length."""
        return CredentialVault(
            store,
            generator_length=self.generator_length,
            cipher_backend=self.cipher_backend,
        )

    def open_session(self, user_id: str, master_key: str) -> VaultSession:
        """Start a session for an authenticated user with configured limits."""
        return VaultSession(
            user_id,
            master_key,
            min_key_length=self.min_master_key_length,
            max_age=self.session_ttl,
        )
