"""Credential Vault — Secrets encrypted under a user-held master key.

Security Note (Threat Model):
    Secret values are only ever stored as cipher envelopes. The master key
    and any revealed plaintext exist in process memory during a session.
    A memory dump of the application process could expose them.
    This is an accepted limitation; mitigation requires HSM/secure
    enclave integration which is out of scope.
    There is no key escrow: a lost master key means unrecoverable secrets.
"""

from .crypto import encrypt, decrypt, DecryptResult
from .generator import generate, ALPHABET
from .models import CredentialFields, CredentialRecord
from .store import RecordStore, MemoryRecordStore, JsonFileRecordStore
from .postgres import PostgresRecordStore
from .credential_vault import CredentialVault
from .config import VaultConfig

__all__ = [
    "encrypt",
    "decrypt",
    "DecryptResult",
    "generate",
    "ALPHABET",
    "CredentialFields",
    "CredentialRecord",
    "RecordStore",
    "MemoryRecordStore",
    "JsonFileRecordStore",
    "PostgresRecordStore",
    "CredentialVault",
    "VaultConfig",
]
