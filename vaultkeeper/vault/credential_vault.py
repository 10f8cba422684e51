"""
CredentialVault — record lifecycle over an external record store.

Provides the public API for stored credentials:
- ``create_record(fields, session)``: encrypt the secret and insert
- ``update_record(record_id, fields, session)``: re-encrypt and replace
- ``delete_record(record_id, session)``: scoped delete
- ``list_records(session)``: newest first, ciphertext untouched
- ``reveal_secret(record, session)``: transient decrypt for display

Every store call is scoped by the session's ``user_id``; the owner is never
taken from caller-supplied fields.

Security Note:
    Never log plaintext, ciphertext or the master key. Only log record ids,
    operations and user IDs.
"""
import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..exceptions import ValidationFailure, NotFoundOrForbidden, StoreUnavailable
from ..session import VaultSession
from .crypto import encrypt, decrypt, DecryptResult, version_for_backend
from .generator import generate, DEFAULT_LENGTH
from .models import CredentialFields, CredentialRecord
from .store import RecordStore

logger = logging.getLogger("vaultkeeper.vault")

FieldsInput = Union[CredentialFields, Mapping[str, Any]]


def validate_fields(fields: FieldsInput) -> CredentialFields:
    """Coerce form input into CredentialFields.

    Raises:
        ValidationFailure: naming the first invalid field.
    """
    if isinstance(fields, CredentialFields):
        return fields
    try:
        return CredentialFields.model_validate(dict(fields))
    except ValidationError as err:
        first = err.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else "fields"
        raise ValidationFailure(field) from None


class CredentialVault:
    """Credential records encrypted under the session master key.

    Args:
        store: Record store implementation.
        generator_length: Default length for :meth:`generate_secret`.
        cipher_backend: AEAD backend for new envelopes (``aesgcm`` or
            ``chacha20``); defaults to VAULT_CIPHER_BACKEND.
    """

    def __init__(
        self,
        store: RecordStore,
        generator_length: int = DEFAULT_LENGTH,
        cipher_backend: Optional[str] = None,
    ):
        self._store = store
        self._generator_length = generator_length
        self._envelope_version = (
            version_for_backend(cipher_backend) if cipher_backend else None
        )

    @property
    def store(self) -> RecordStore:
        return self._store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_record(
        self, fields: FieldsInput, session: VaultSession
    ) -> CredentialRecord:
        """Encrypt the secret and persist a new record.

        Args:
            fields: Title, username, plaintext secret, optional url/notes.
            session: Active session supplying owner and master key.

        Returns:
            The stored record.

        Raises:
            ValidationFailure: If title or username is empty.
            SessionClosed: If the session has ended.
            StoreUnavailable: If the store write fails.
        """
        form = validate_fields(fields)
        record = CredentialRecord(
            user_id=session.user_id,
            title=form.title,
            username=form.username,
            secret_ciphertext=encrypt(form.secret, session.master_key, self._envelope_version),
            url=form.url,
            notes=form.notes,
        )
        try:
            stored = await self._store.insert(record)
        except StoreUnavailable:
            logger.error(
                "Vault create failed: user=%s record=%s", session.user_id, record.id,
            )
            raise
        logger.debug("Vault create: user=%s record=%s", session.user_id, record.id)
        return stored

    async def update_record(
        self, record_id: str, fields: FieldsInput, session: VaultSession
    ) -> CredentialRecord:
        """Replace all fields of an owned record, re-encrypting the secret.

        Raises:
            ValidationFailure: If title or username is empty.
            NotFoundOrForbidden: If no record with this id belongs to the user.
            StoreUnavailable: If the store call fails.
        """
        form = validate_fields(fields)
        changes = {
            "title": form.title,
            "username": form.username,
            "secret_ciphertext": encrypt(form.secret, session.master_key, self._envelope_version),
            "url": form.url,
            "notes": form.notes,
        }
        count = await self._store.update(record_id, session.user_id, changes)
        if not count:
            logger.debug(
                "Vault update rejected: user=%s record=%s", session.user_id, record_id,
            )
            raise NotFoundOrForbidden(record_id)
        record = await self._store.fetch(record_id, session.user_id)
        if record is None:
            # deleted by a concurrent call between update and fetch
            raise NotFoundOrForbidden(record_id)
        logger.debug("Vault update: user=%s record=%s", session.user_id, record_id)
        return record

    async def delete_record(self, record_id: str, session: VaultSession) -> None:
        """Delete an owned record.

        Raises:
            NotFoundOrForbidden: If no record with this id belongs to the user.
            StoreUnavailable: If the store call fails.
        """
        count = await self._store.delete(record_id, session.user_id)
        if not count:
            logger.debug(
                "Vault delete rejected: user=%s record=%s", session.user_id, record_id,
            )
            raise NotFoundOrForbidden(record_id)
        logger.debug("Vault delete: user=%s record=%s", session.user_id, record_id)

    async def list_records(self, session: VaultSession) -> list[CredentialRecord]:
        """Return the user's records, most recent first, still encrypted."""
        records = await self._store.select_all(session.user_id)
        logger.debug("Vault list: user=%s %d record(s)", session.user_id, len(records))
        return list(records)

    def reveal_secret(
        self, record: CredentialRecord, session: VaultSession
    ) -> DecryptResult:
        """Decrypt a record's secret for transient display.

        Returns a failed DecryptResult instead of raising when the envelope
        cannot be opened; render a placeholder in that case.
        """
        result = decrypt(record.secret_ciphertext, session.master_key)
        if not result.ok:
            logger.warning(
                "Vault reveal failed: user=%s record=%s reason=%s",
                session.user_id, record.id, result.error.reason,
            )
        return result

    def edit_fields(
        self, record: CredentialRecord, session: VaultSession
    ) -> CredentialFields:
        """Form fields for editing a record, secret revealed.

        An unrecoverable secret is presented as an empty string.
        """
        return CredentialFields(
            title=record.title,
            username=record.username,
            secret=self.reveal_secret(record, session).value_or(""),
            url=record.url,
            notes=record.notes,
        )

    def generate_secret(self, length: Optional[int] = None) -> str:
        """Generate a replacement secret to populate the secret field."""
        return generate(self._generator_length if length is None else length)
