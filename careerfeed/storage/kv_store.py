"""
Key-Value Store Module

String-to-string storage with synchronous get/set/remove, standing in for the
browser's local storage. The master and detail stores are written against the
``KeyValueStore`` protocol so tests can hand them an in-memory fake.

Example Usage:
    from careerfeed.storage.kv_store import JsonFileKeyValueStore

    store = JsonFileKeyValueStore("data/local_store.json")
    store.set_item("csv_users", "[]")
    store.get_item("csv_users")   # '[]'
    store.remove_item("csv_users")
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


class StorageError(IOError):
    """Raised when the underlying store cannot complete an operation."""

    pass


class StorageQuotaExceededError(StorageError):
    """Raised when a write would push the store over its size quota."""

    pass


class KeyValueStore(Protocol):
    """Persistent mapping of string keys to string values."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class InMemoryKeyValueStore:
    """Process-local store, optionally bounded by a byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None):
        """
        Initialize in-memory store.

        Args:
            quota_bytes: Maximum total size of keys plus values (None = unbounded)
        """
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """
        Store a value.

        Raises:
            StorageQuotaExceededError: If the write would exceed quota_bytes
        """
        if self.quota_bytes is not None:
            current = self.size_bytes()
            if key in self._items:
                current -= _entry_size(key, self._items[key])
            if current + _entry_size(key, value) > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Writing {key!r} would exceed quota of {self.quota_bytes} bytes"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def size_bytes(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._items.items())

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileKeyValueStore(InMemoryKeyValueStore):
    """Store persisted as one JSON object on disk, rewritten on every change."""

    def __init__(self, path: Path | str, quota_bytes: Optional[int] = None):
        """
        Initialize file-backed store, loading any existing contents.

        Args:
            path: JSON file holding the mapping (created on first write)
            quota_bytes: Maximum total size of keys plus values (None = unbounded)

        Raises:
            StorageError: If the existing file is unreadable or not a JSON object
        """
        super().__init__(quota_bytes=quota_bytes)
        self.path = Path(path)

        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StorageError(f"Failed to read store file {self.path}: {e}") from e

            if not isinstance(data, dict):
                raise StorageError(f"Store file {self.path} does not hold a JSON object")
            self._items = {str(k): str(v) for k, v in data.items()}

    def set_item(self, key: str, value: str) -> None:
        previous = self._items.get(key)
        super().set_item(key, value)
        try:
            self._flush()
        except StorageError:
            if previous is None:
                self._items.pop(key, None)
            else:
                self._items[key] = previous
            raise

    def remove_item(self, key: str) -> None:
        if key not in self._items:
            return
        previous = self._items.pop(key)
        try:
            self._flush()
        except StorageError:
            self._items[key] = previous
            raise

    def _flush(self) -> None:
        """Write the mapping through a temp file so a crash never truncates it."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._items, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write store file {self.path}: {e}") from e
