"""
VaultKeeper errors.

Every error carries a ``message`` safe to show to an end user.
Store and ownership failures deliberately share the same generic message.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for all vault errors."""

    message: str = "operation failed"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationFailure(VaultError):
    """A required field is missing or malformed."""

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"{field} is required")


class DecryptionFailure(VaultError):
    """A cipher envelope could not be opened.

    Wrong master key and corrupted envelope are indistinguishable here.
    """

    def __init__(self, reason: str = "authentication_failed") -> None:
        self.reason = reason
        super().__init__("could not recover secret")

    def __repr__(self) -> str:
        return f"DecryptionFailure(reason={self.reason!r})"


class NotFoundOrForbidden(VaultError):
    """Record does not exist or is owned by another user."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__()


class StoreUnavailable(VaultError):
    """The record store failed to complete a call."""


class SessionClosed(VaultError):
    """The master key was requested after logout or session expiry."""

    def __init__(self) -> None:
        super().__init__("session is closed, provide the master key again")
