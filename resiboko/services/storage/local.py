"""
Local Storage Implementations

JsonFileStorage keeps every key in one JSON object on disk, which
survives restarts and is scoped to the machine/profile that runs the
app. InMemoryStorage is the same contract without the disk, used in
tests and when the data directory cannot be created.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from resiboko.services.storage.interface import (
    KeyValueStorageInterface,
    StorageReadError,
    StorageWriteError,
)


class JsonFileStorage(KeyValueStorageInterface):
    """
    File-backed key-value storage.

    The file holds a single JSON object mapping keys to string values.
    It is created on the first write.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def check_writable(self) -> None:
        """Create the data directory and raise StorageWriteError if the file cannot be written."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Cannot create {self._path.parent}: {e}")
        target = self._path if self._path.exists() else self._path.parent
        if self._path.is_dir() or not os.access(target, os.W_OK):
            raise StorageWriteError(f"{self._path} is not writable")

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageReadError(f"Failed to read {self._path}: {e}")
        if not isinstance(data, dict):
            raise StorageReadError(f"Unexpected content in {self._path}")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageReadError(f"Value under {key!r} is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageReadError:
            # Unreadable file: the new value replaces it
            data = {}
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(data, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise StorageWriteError(f"Failed to write {self._path}: {e}")


class InMemoryStorage(KeyValueStorageInterface):
    """Dictionary-backed storage. Lives as long as the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
