"""
Vault Crypto Core — Key derivation, envelope encryption and decryption.

Secret values are sealed under a key derived from the user's master key:
    HKDF(master_key, salt, "vaultkeeper-secret-v{N}") → AEAD → envelope

Envelope format (base64url, padded):
    [version 1B][salt 16B][nonce 12B][encrypted_payload + tag 16B]

The version byte names the AEAD algorithm, so envelopes written under any
backend stay decryptable regardless of the current ``VAULT_CIPHER_BACKEND``.

Security Note:
    Never log plaintext, ciphertext or master key values.
    Salt and nonce are random per envelope; identical plaintexts under the
    same master key never produce identical envelopes.
"""
import os
import struct
import base64
import binascii
import logging
from typing import Optional

from pydantic import BaseModel
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import DecryptionFailure

logger = logging.getLogger("vaultkeeper.vault")

VERSION_SIZE = 1
SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256

VERSION_AESGCM = 1
VERSION_CHACHA20 = 2

CIPHERS: dict[int, type] = {
    VERSION_AESGCM: AESGCM,
    VERSION_CHACHA20: ChaCha20Poly1305,
}

BACKENDS: dict[str, int] = {
    "aesgcm": VERSION_AESGCM,
    "chacha20": VERSION_CHACHA20,
}

_HEADER_SIZE = VERSION_SIZE + SALT_SIZE + NONCE_SIZE


def version_for_backend(backend: str) -> int:
    """Return the envelope version for a cipher backend name.

    Raises:
        ValueError: If the backend is not supported.
    """
    try:
        return BACKENDS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


def _get_envelope_version() -> int:
    """Return the envelope version for new encryptions from VAULT_CIPHER_BACKEND."""
    return version_for_backend(os.environ.get("VAULT_CIPHER_BACKEND", "aesgcm"))


# Resolve once at module load so a process never mixes backends on write.
ENVELOPE_VERSION = _get_envelope_version()


class DecryptResult(BaseModel):
    """Outcome of :func:`decrypt`: either a plaintext value or a failure."""

    value: Optional[str] = None
    error: Optional[DecryptionFailure] = None

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the plaintext or raise the stored DecryptionFailure."""
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: str = "") -> str:
        return self.value if self.error is None else default

    def __repr__(self) -> str:
        if self.error is not None:
            return f"<DecryptResult failed reason={self.error.reason!r}>"
        return "<DecryptResult ok>"

    __str__ = __repr__


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(master_key: str, salt: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        master_key: User-supplied master key string.
        salt: Per-envelope random salt.
        context: Context string for domain separation.

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        info=context.encode("utf-8"),
    )
    return hkdf.derive(master_key.encode("utf-8"))


def _context(version: int) -> str:
    return f"vaultkeeper-secret-v{version}"


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, master_key: str, version: Optional[int] = None) -> str:
    """Encrypt a secret value into a self-contained envelope.

    Args:
        plaintext: Secret value (any string, empty included).
        master_key: Session master key.
        version: Envelope version (cipher) to write; defaults to
            the one resolved from VAULT_CIPHER_BACKEND.

    Returns:
        ASCII envelope string.
    """
    if version is None:
        version = ENVELOPE_VERSION
    elif version not in CIPHERS:
        raise ValueError(f"Unsupported envelope version: {version}")
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    derived = derive_key(master_key, salt, _context(version))
    cipher = CIPHERS[version](derived)
    header = struct.pack("!B", version) + salt + nonce
    # header is bound as associated data, tampering with it fails the tag
    ct = cipher.encrypt(nonce, plaintext.encode("utf-8"), header)
    return base64.urlsafe_b64encode(header + ct).decode("ascii")


def decrypt(envelope: str, master_key: str) -> DecryptResult:
    """Open an envelope produced by :func:`encrypt`.

    Never raises: a wrong master key, a corrupted or truncated envelope
    and an unknown version all come back as a failed DecryptResult.

    Args:
        envelope: Envelope string.
        master_key: Session master key.

    Returns:
        DecryptResult with ``value`` set on success, ``error`` otherwise.
    """
    try:
        raw = base64.urlsafe_b64decode(envelope.encode("ascii"))
    except (binascii.Error, ValueError, UnicodeEncodeError, AttributeError):
        return _failed("malformed")
    if len(raw) < _HEADER_SIZE + TAG_SIZE:
        return _failed("malformed")

    version = struct.unpack("!B", raw[:VERSION_SIZE])[0]
    cipher_cls = CIPHERS.get(version)
    if cipher_cls is None:
        return _failed("unsupported_version")

    salt = raw[VERSION_SIZE:VERSION_SIZE + SALT_SIZE]
    nonce = raw[VERSION_SIZE + SALT_SIZE:_HEADER_SIZE]
    ct = raw[_HEADER_SIZE:]
    derived = derive_key(master_key, salt, _context(version))
    try:
        plaintext = cipher_cls(derived).decrypt(nonce, ct, raw[:_HEADER_SIZE])
    except InvalidTag:
        return _failed("authentication_failed")
    try:
        return DecryptResult(value=plaintext.decode("utf-8"))
    except UnicodeDecodeError:
        return _failed("malformed")


def _failed(reason: str) -> DecryptResult:
    logger.debug("Envelope decryption failed: reason=%s", reason)
    return DecryptResult(error=DecryptionFailure(reason))


def envelope_version(envelope: str) -> Optional[int]:
    """Return the version byte of an envelope, or None if unreadable."""
    try:
        raw = base64.urlsafe_b64decode(envelope.encode("ascii"))
    except (binascii.Error, ValueError, UnicodeEncodeError, AttributeError):
        return None
    if not raw:
        return None
    return raw[0]
