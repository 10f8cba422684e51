"""Tests for VaultConfig."""
import pytest
from pydantic import ValidationError

from vaultkeeper.exceptions import ValidationFailure
from vaultkeeper.vault import crypto
from vaultkeeper.vault.config import VaultConfig
from vaultkeeper.vault.credential_vault import CredentialVault
from vaultkeeper.vault.crypto import envelope_version, VERSION_AESGCM, VERSION_CHACHA20
from vaultkeeper.vault.store import MemoryRecordStore

_ENV = (
    "VAULT_CIPHER_BACKEND",
    "VAULT_MIN_MASTER_KEY_LENGTH",
    "VAULT_GENERATOR_LENGTH",
    "VAULT_SESSION_TTL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


class TestVaultConfig:
    """Tests for validated settings."""

    def test_defaults(self):
        """Test default configuration values."""
        config = VaultConfig()
        assert config.cipher_backend == "aesgcm"
        assert config.min_master_key_length == 6
        assert config.generator_length == 16
        assert config.session_ttl is None

    def test_unsupported_backend(self):
        """Test that unknown cipher backends are rejected."""
        with pytest.raises(ValidationError):
            VaultConfig(cipher_backend="rot13")

    def test_backend_case_insensitive(self):
        """Test that backend names are normalised."""
        assert VaultConfig(cipher_backend="ChaCha20").cipher_backend == "chacha20"

    def test_session_ttl_minimum(self):
        """Test that a session TTL below 60 seconds is rejected."""
        with pytest.raises(ValidationError):
            VaultConfig(session_ttl=10)

    def test_generator_length_bounds(self):
        """Test that generator length must be positive."""
        with pytest.raises(ValidationError):
            VaultConfig(generator_length=0)


class TestFromEnv:
    """Tests for VaultConfig.from_env()."""

    def test_from_env_defaults(self):
        """Test loading with no environment variables set."""
        assert VaultConfig.from_env() == VaultConfig()

    def test_from_env_values(self, monkeypatch):
        """Test loading all values from the environment."""
        monkeypatch.setenv("VAULT_CIPHER_BACKEND", "chacha20")
        monkeypatch.setenv("VAULT_MIN_MASTER_KEY_LENGTH", "12")
        monkeypatch.setenv("VAULT_GENERATOR_LENGTH", "24")
        monkeypatch.setenv("VAULT_SESSION_TTL", "900")
        config = VaultConfig.from_env()
        assert config.cipher_backend == "chacha20"
        assert config.min_master_key_length == 12
        assert config.generator_length == 24
        assert config.session_ttl == 900

    def test_from_env_bad_integer(self, monkeypatch):
        """Test that a malformed integer raises ValueError."""
        monkeypatch.setenv("VAULT_SESSION_TTL", "soon")
        with pytest.raises(ValueError, match="VAULT_SESSION_TTL"):
            VaultConfig.from_env()


class TestOpenSession:
    """Tests for sessions opened from configuration."""

    def test_applies_limits(self):
        """Test that configured limits reach the session."""
        config = VaultConfig(min_master_key_length=10, session_ttl=600)
        session = config.open_session("user-1", "0123456789")
        assert session.max_age == 600
        with pytest.raises(ValidationFailure):
            config.open_session("user-1", "short-key")


class TestBuildVault:
    """Tests for vaults built from configuration."""

    @pytest.mark.asyncio
    async def test_chacha20_backend_reaches_envelopes(self):
        """Test that a chacha20 config writes version-2 envelopes."""
        vault = VaultConfig(cipher_backend="chacha20").vault(MemoryRecordStore())
        session = VaultConfig().open_session("user-1", "correct horse battery")
        record = await vault.create_record(
            {"title": "GitHub", "username": "octocat", "secret": "hunter2"}, session,
        )
        assert envelope_version(record.secret_ciphertext) == VERSION_CHACHA20
        assert vault.reveal_secret(record, session).value == "hunter2"

        updated = await vault.update_record(
            record.id, {"title": "GitHub", "username": "octocat", "secret": "x"}, session,
        )
        assert envelope_version(updated.secret_ciphertext) == VERSION_CHACHA20

    @pytest.mark.asyncio
    async def test_default_backend_is_aesgcm(self):
        """Test that the default config writes AES-GCM envelopes."""
        vault = VaultConfig().vault(MemoryRecordStore())
        session = VaultConfig().open_session("user-1", "correct horse battery")
        record = await vault.create_record(
            {"title": "GitHub", "username": "octocat", "secret": "hunter2"}, session,
        )
        assert envelope_version(record.secret_ciphertext) == VERSION_AESGCM

    def test_generator_length_from_env(self, monkeypatch):
        """Test that VAULT_GENERATOR_LENGTH sets the generated secret length."""
        monkeypatch.setenv("VAULT_GENERATOR_LENGTH", "24")
        vault = VaultConfig.from_env().vault(MemoryRecordStore())
        assert isinstance(vault, CredentialVault)
        assert len(vault.generate_secret()) == 24
        assert len(vault.generate_secret(8)) == 8

    def test_unknown_backend_rejected_by_vault(self):
        """Test that the vault refuses an unknown backend name."""
        with pytest.raises(ValueError, match="rot13"):
            CredentialVault(MemoryRecordStore(), cipher_backend="rot13")

    def test_env_backend_rejected_consistently(self, monkeypatch):
        """Test that cipher and config both reject an unknown env backend."""
        monkeypatch.setenv("VAULT_CIPHER_BACKEND", "rot13")
        with pytest.raises(ValueError, match="rot13"):
            crypto._get_envelope_version()
        with pytest.raises(ValidationError):
            VaultConfig.from_env()
