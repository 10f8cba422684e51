"""
VaultSession — scoped holder of the master key for one authenticated user.

The master key lives only in this object. It is never serialized, never
logged and discarded on ``close()`` (logout) or when ``max_age`` elapses.
"""
import uuid
import logging
from typing import Optional
from datetime import datetime, timezone

from .exceptions import ValidationFailure, SessionClosed

logger = logging.getLogger("vaultkeeper.session")

MIN_MASTER_KEY_LENGTH = 6


class VaultSession:
    """Master key and owner identity for the duration of a session.

    Use as a context manager to guarantee the key is released::

        async with VaultSession(user_id, master_key) as session:
            await vault.list_records(session)
    """

    __slots__ = ('_id_', '_user_id', '_master_key', '_max_age', '__created__', '_created')

    def __init__(
        self,
        user_id: str,
        master_key: str,
        *,
        min_key_length: int = MIN_MASTER_KEY_LENGTH,
        max_age: Optional[int] = None,
    ) -> None:
        if not user_id:
            raise ValidationFailure("user_id")
        if not master_key or len(master_key) < min_key_length:
            raise ValidationFailure(
                "master_key",
                f"Master key must be at least {min_key_length} characters",
            )
        if max_age is not None and max_age < 1:
            raise ValidationFailure("max_age", "max_age must be at least 1 second")
        self._id_ = uuid.uuid4().hex
        self._user_id = str(user_id)
        self._master_key: Optional[str] = master_key
        self._max_age = max_age
        self.__created__ = datetime.now(timezone.utc)
        self._created = int(self.__created__.timestamp())
        logger.debug("Vault session opened: user=%s session=%s", self._user_id, self._id_)

    def __repr__(self) -> str:
        return (
            f'<Vault-Session [user:{self._user_id}, created:{self._created}, '
            f'closed:{self.closed}]>'
        )

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def logon_time(self) -> datetime:
        return self.__created__

    @property
    def created(self) -> int:
        return self._created

    @property
    def max_age(self) -> Optional[int]:
        return self._max_age

    @property
    def expired(self) -> bool:
        if self._max_age is None:
            return False
        age = datetime.now(timezone.utc) - self.__created__
        return age.total_seconds() > self._max_age

    @property
    def closed(self) -> bool:
        return self._master_key is None

    @property
    def master_key(self) -> str:
        """Return the master key.

        Raises:
            SessionClosed: after logout, or once max_age has elapsed.
        """
        if self._master_key is None:
            raise SessionClosed()
        if self.expired:
            self.close()
            raise SessionClosed()
        return self._master_key

    def close(self) -> None:
        """Discard the master key. Safe to call more than once."""
        if self._master_key is not None:
            self._master_key = None
            logger.debug("Vault session closed: user=%s session=%s", self._user_id, self._id_)

    # --- Context managers ---

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    async def __aenter__(self) -> "VaultSession":
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()
