"""VaultKeeper.

Store service credentials with secret values encrypted under a master key.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    ValidationFailure,
    DecryptionFailure,
    NotFoundOrForbidden,
    StoreUnavailable,
    SessionClosed,
)
from .session import VaultSession
from .vault import (
    CredentialVault,
    CredentialFields,
    CredentialRecord,
    MemoryRecordStore,
    VaultConfig,
)

__all__ = [
    "__version__",
    "VaultError",
    "ValidationFailure",
    "DecryptionFailure",
    "NotFoundOrForbidden",
    "StoreUnavailable",
    "SessionClosed",
    "VaultSession",
    "CredentialVault",
    "CredentialFields",
    "CredentialRecord",
    "MemoryRecordStore",
    "VaultConfig",
]
