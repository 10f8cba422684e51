"""
PostgreSQL Record Store — asyncpg-compatible adapter.

Every statement filters by ``user_id``. Affected counts are read from the
command status returned by ``execute`` (e.g. ``"UPDATE 1"``).

Security Note:
    Only ciphertext is ever bound to a statement. Never log row values.
"""
import logging
from typing import Any, Optional

from ..exceptions import StoreUnavailable
from .models import CredentialRecord, UPDATABLE_FIELDS

logger = logging.getLogger("vaultkeeper.vault")

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_CREATE_SCHEMA = """
CREATE SCHEMA IF NOT EXISTS vault;
CREATE TABLE IF NOT EXISTS vault.credentials (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    username TEXT NOT NULL,
    secret_ciphertext TEXT NOT NULL,
    url TEXT,
    notes TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS credentials_user_created_idx
    ON vault.credentials (user_id, created_at DESC, id DESC);
"""

_INSERT_RECORD = """
INSERT INTO vault.credentials
    (id, user_id, title, username, secret_ciphertext, url, notes, created_at)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
"""

_SELECT_ALL = """
SELECT id, user_id, title, username, secret_ciphertext, url, notes, created_at
FROM vault.credentials
WHERE user_id = $1
ORDER BY created_at DESC, id DESC
"""

_SELECT_ONE = """
SELECT id, user_id, title, username, secret_ciphertext, url, notes, created_at
FROM vault.credentials
WHERE id = $1 AND user_id = $2
"""

_UPDATE_RECORD = """
UPDATE vault.credentials
SET title = $3, username = $4, secret_ciphertext = $5, url = $6, notes = $7
WHERE id = $1 AND user_id = $2
"""

_DELETE_RECORD = """
DELETE FROM vault.credentials
WHERE id = $1 AND user_id = $2
"""


def affected_rows(status: Any) -> int:
    """Parse the row count from a command status like ``"DELETE 1"``."""
    if isinstance(status, int):
        return status
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class PostgresRecordStore:
    """Record store backed by the ``vault.credentials`` table.

    Args:
        db_pool: asyncpg-compatible connection pool.
    """

    def __init__(self, db_pool: Any) -> None:
        self._db = db_pool

    async def _execute(self, operation: str, query: str, *args) -> Any:
        try:
            async with self._db.acquire() as conn:
                return await conn.execute(query, *args)
        except Exception as err:
            logger.error("Record store %s failed: %s", operation, type(err).__name__)
            raise StoreUnavailable() from err

    async def _fetch(self, operation: str, query: str, *args) -> list:
        try:
            async with self._db.acquire() as conn:
                return await conn.fetch(query, *args)
        except Exception as err:
            logger.error("Record store %s failed: %s", operation, type(err).__name__)
            raise StoreUnavailable() from err

    async def create_schema(self) -> None:
        await self._execute("create_schema", _CREATE_SCHEMA)

    async def insert(self, record: CredentialRecord) -> CredentialRecord:
        await self._execute(
            "insert",
            _INSERT_RECORD,
            record.id, record.user_id, record.title, record.username,
            record.secret_ciphertext, record.url, record.notes, record.created_at,
        )
        return record

    async def select_all(self, user_id: str) -> list[CredentialRecord]:
        rows = await self._fetch("select_all", _SELECT_ALL, user_id)
        return [CredentialRecord.model_validate(dict(row)) for row in rows]

    async def fetch(self, record_id: str, user_id: str) -> Optional[CredentialRecord]:
        rows = await self._fetch("fetch", _SELECT_ONE, record_id, user_id)
        if not rows:
            return None
        return CredentialRecord.model_validate(dict(rows[0]))

    async def update(self, record_id: str, user_id: str, changes: dict[str, Any]) -> int:
        missing = set(UPDATABLE_FIELDS) - set(changes)
        if missing:
            raise ValueError(f"Full-field update requires: {sorted(missing)}")
        status = await self._execute(
            "update",
            _UPDATE_RECORD,
            record_id, user_id, changes["title"], changes["username"],
            changes["secret_ciphertext"], changes["url"], changes["notes"],
        )
        return affected_rows(status)

    async def delete(self, record_id: str, user_id: str) -> int:
        status = await self._execute("delete", _DELETE_RECORD, record_id, user_id)
        return affected_rows(status)
