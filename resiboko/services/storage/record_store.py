"""
Record Store

Persists the ordered list of saved transaction records under a single
key of a KeyValueStorageInterface backend.

DESIGN DECISION: The record list is explicit state. The store only
loads and persists whole lists; inserting and deleting are pure
functions that take a list and return a new one. The Streamlit session
is the only place that holds the current list.

Failure policy:
- load(): corrupt or unreadable data degrades to an empty list
- persist(): failures are logged, never retried, never raised
"""

import json
import time
from datetime import date
from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from resiboko.models.transaction import TransactionRecord
from resiboko.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
)
from resiboko.validation import IncompleteRecordError


logger = structlog.get_logger(__name__)


def new_record_id() -> int:
    """
    Current time in epoch milliseconds.

    Two saves within the same millisecond get the same id.
    """
    return int(time.time() * 1000)


def sort_records(records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    """Newest date first. Ties keep their existing order."""
    return sorted(records, key=lambda r: r.date or date.min, reverse=True)


def insert_record(
    records: list[TransactionRecord],
    record: TransactionRecord,
    record_id: Optional[int] = None,
) -> list[TransactionRecord]:
    """
    Return a new list with the record added and the list re-sorted.

    Args:
        records: Current saved records
        record: Complete draft to save
        record_id: Explicit id; defaults to new_record_id()

    Raises:
        IncompleteRecordError: If a required field is missing
    """
    missing = record.missing_fields()
    if missing:
        raise IncompleteRecordError(missing)

    saved = record.model_copy(
        update={"id": record_id if record_id is not None else new_record_id()}
    )
    return sort_records([saved, *records])


def delete_record(
    records: list[TransactionRecord],
    record_id: int,
) -> list[TransactionRecord]:
    """Return a new list without any record carrying record_id."""
    return [r for r in records if r.id != record_id]


class RecordStore:
    """
    Loads and persists the full record list.
    """

    def __init__(self, storage: KeyValueStorageInterface, key: str = "savedReceipts"):
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[TransactionRecord]:
        """
        Rehydrate the saved records.

        Returns an empty list if nothing was stored or the stored value
        cannot be parsed. Individual malformed entries are skipped.
        """
        try:
            raw = self._storage.get(self._key)
        except StorageError as e:
            logger.error("record_store_read_failed", key=self._key, error=str(e))
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error("record_store_corrupt", key=self._key, error=str(e))
            return []

        if not isinstance(data, list):
            logger.error(
                "record_store_corrupt",
                key=self._key,
                error=f"expected a list, got {type(data).__name__}",
            )
            return []

        records = []
        for item in data:
            try:
                records.append(TransactionRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "record_store_entry_skipped",
                    key=self._key,
                    error=str(e),
                )
                continue  # Skip malformed entries

        return records

    def persist(self, records: list[TransactionRecord]) -> bool:
        """
        Write the full list, replacing whatever was stored.

        Returns True on success. Failures are logged and swallowed.
        """
        try:
            payload = json.dumps(
                [r.to_storage_dict() for r in records],
                ensure_ascii=False,
            )
            self._storage.set(self._key, payload)
            return True
        except (StorageError, TypeError, ValueError) as e:
            logger.error(
                "record_store_write_failed",
                key=self._key,
                record_count=len(records),
                error=str(e),
            )
            return False
