"""
Storage Services Package

Provides the abstract key-value interface, local implementations,
and the record store that persists the transaction list.
"""

from resiboko.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from resiboko.services.storage.local import (
    InMemoryStorage,
    JsonFileStorage,
)
from resiboko.services.storage.record_store import (
    RecordStore,
    delete_record,
    insert_record,
    new_record_id,
    sort_records,
)

__all__ = [
    # Interfaces
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Local implementations
    "InMemoryStorage",
    "JsonFileStorage",
    # Record store
    "RecordStore",
    "delete_record",
    "insert_record",
    "new_record_id",
    "sort_records",
]
