"""Services package."""

from resiboko.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    RecordStore,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from resiboko.services.sync import (
    AppsScriptSync,
    GoogleSheetsClient,
    GoogleSheetsSync,
    SheetSyncInterface,
    SyncConfigurationError,
    SyncError,
    create_sync_backend,
)

__all__ = [
    # Storage services
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "RecordStore",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Sync services
    "AppsScriptSync",
    "GoogleSheetsClient",
    "GoogleSheetsSync",
    "SheetSyncInterface",
    "SyncConfigurationError",
    "SyncError",
    "create_sync_backend",
]
