"""
Record Store — the persistence contract used by the credential vault.

Every read and write is scoped by ``user_id``; a record id alone never
reaches another user's data. Stores only ever see ciphertext.

Adapters here:
- ``MemoryRecordStore``: in-process, for tests and embedding.
- ``JsonFileRecordStore``: single orjson document on local disk.
"""
import os
import asyncio
import logging
import itertools
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

import orjson
from pydantic import ValidationError

from ..exceptions import StoreUnavailable
from .models import CredentialRecord, UPDATABLE_FIELDS

logger = logging.getLogger("vaultkeeper.vault")


@runtime_checkable
class RecordStore(Protocol):
    """Keyed collection of credential records."""

    async def insert(self, record: CredentialRecord) -> CredentialRecord:
        ...

    async def select_all(self, user_id: str) -> list[CredentialRecord]:
        """Return the user's records, newest ``created_at`` first."""
        ...

    async def fetch(self, record_id: str, user_id: str) -> Optional[CredentialRecord]:
        ...

    async def update(self, record_id: str, user_id: str, changes: dict[str, Any]) -> int:
        """Apply ``changes`` to the owned record; return affected row count."""
        ...

    async def delete(self, record_id: str, user_id: str) -> int:
        """Remove the owned record; return affected row count."""
        ...


def _check_changes(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")
    return changes


class MemoryRecordStore:
    """Record store kept in a dict. Not shared across processes."""

    def __init__(self) -> None:
        self._records: dict[str, CredentialRecord] = {}
        self._order: dict[str, int] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._records)

    def _owned(self, record_id: str, user_id: str) -> Optional[CredentialRecord]:
        record = self._records.get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    async def insert(self, record: CredentialRecord) -> CredentialRecord:
        if record.id in self._records:
            logger.error("Duplicate record id on insert: %s", record.id)
            raise StoreUnavailable()
        self._records[record.id] = record
        self._order[record.id] = next(self._seq)
        return record

    async def select_all(self, user_id: str) -> list[CredentialRecord]:
        rows = [r for r in self._records.values() if r.user_id == user_id]
        rows.sort(key=lambda r: (r.created_at, self._order[r.id]), reverse=True)
        return rows

    async def fetch(self, record_id: str, user_id: str) -> Optional[CredentialRecord]:
        return self._owned(record_id, user_id)

    async def update(self, record_id: str, user_id: str, changes: dict[str, Any]) -> int:
        record = self._owned(record_id, user_id)
        if record is None:
            return 0
        self._records[record_id] = record.model_copy(update=_check_changes(changes))
        return 1

    async def delete(self, record_id: str, user_id: str) -> int:
        if self._owned(record_id, user_id) is None:
            return 0
        del self._records[record_id]
        del self._order[record_id]
        return 1


class JsonFileRecordStore(MemoryRecordStore):
    """Record store persisted as a single JSON document.

    The whole file is rewritten atomically (temp file + ``os.replace``)
    after each mutation. Suitable for single-process local use.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self._path = Path(path)
        self._lock = asyncio.Lock()
        self._loaded = False

    def _load(self) -> None:
        if self._loaded:
            return
        try:
            if self._path.exists():
                rows = orjson.loads(self._path.read_bytes())
                for row in rows:
                    record = CredentialRecord.model_validate(row)
                    self._records[record.id] = record
                    self._order[record.id] = next(self._seq)
        except (OSError, orjson.JSONDecodeError, ValidationError, TypeError) as err:
            logger.error("Failed to load record store %s: %s", self._path, err)
            raise StoreUnavailable() from err
        self._loaded = True

    def _flush(self) -> None:
        rows = sorted(self._records.values(), key=lambda r: self._order[r.id])
        data = orjson.dumps(
            [r.model_dump() for r in rows], option=orjson.OPT_INDENT_2,
        )
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, self._path)
        except OSError as err:
            logger.error("Failed to write record store %s: %s", self._path, err)
            raise StoreUnavailable() from err

    async def insert(self, record: CredentialRecord) -> CredentialRecord:
        async with self._lock:
            self._load()
            await super().insert(record)
            try:
                self._flush()
            except StoreUnavailable:
                # keep memory consistent with disk
                del self._records[record.id]
                del self._order[record.id]
                raise
            return record

    async def select_all(self, user_id: str) -> list[CredentialRecord]:
        async with self._lock:
            self._load()
            return await super().select_all(user_id)

    async def fetch(self, record_id: str, user_id: str) -> Optional[CredentialRecord]:
        async with self._lock:
            self._load()
            return await super().fetch(record_id, user_id)

    async def update(self, record_id: str, user_id: str, changes: dict[str, Any]) -> int:
        async with self._lock:
            self._load()
            previous = self._records.get(record_id)
            count = await super().update(record_id, user_id, changes)
            if count:
                try:
                    self._flush()
                except StoreUnavailable:
                    self._records[record_id] = previous
                    raise
            return count

    async def delete(self, record_id: str, user_id: str) -> int:
        async with self._lock:
            self._load()
            previous = self._records.get(record_id)
            order = self._order.get(record_id)
            count = await super().delete(record_id, user_id)
            if count:
                try:
                    self._flush()
                except StoreUnavailable:
                    self._records[record_id] = previous
                    self._order[record_id] = order
                    raise
            return count
