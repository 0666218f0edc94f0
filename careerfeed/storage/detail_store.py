"""
Detailed Record Store Module

Keeps one full profile document per user in the key-value store, addressed by
a key derived from the user's display name.

Layout:
    user_json_<key>   pretty-printed JSON of a UserDetailRecord
    user_files        JSON object mapping display name -> <key>

Two names that normalize to the same key ("Ada Lovelace", "ada-lovelace")
share one document. With ``reject_collisions`` enabled, a write whose key is
already held by a different email address is refused instead of overwriting.
"""

import json
import re
from pathlib import Path
from typing import Any, Optional

import jsonlines
from pydantic import ValidationError

from careerfeed.models.user import UserDetailRecord
from careerfeed.storage.kv_store import KeyValueStore, StorageError
from careerfeed.utils.logger import get_logger

RECORD_KEY_PREFIX = "user_json_"
INDEX_KEY = "user_files"

logger: Any = get_logger(
    correlation_id="detail-store",
    phase="storage",
    component="detail_store",
)


def derive_record_key(name: str) -> str:
    """Normalize a display name into a storage key.

    Example:
        >>> derive_record_key("Ada Lovelace")
        'ada_lovelace'
    """
    key = re.sub(r"[^a-zA-Z0-9]", "_", name)
    key = re.sub(r"\s+", "_", key)
    return key.lower()


class DetailStore:
    """Adapter for per-user detail documents."""

    def __init__(self, store: KeyValueStore, reject_collisions: bool = True):
        """
        Initialize detail store.

        Args:
            store: Backing key-value store
            reject_collisions: Refuse writes onto a key owned by another email
        """
        self.store = store
        self.reject_collisions = reject_collisions

    @staticmethod
    def storage_key(name: str) -> str:
        return f"{RECORD_KEY_PREFIX}{derive_record_key(name)}"

    async def save(
        self,
        name: str,
        record: UserDetailRecord,
        previous_name: Optional[str] = None,
    ) -> bool:
        """
        Write ``record`` under the key derived from ``name``.

        When ``previous_name`` differs from ``name`` the old document is removed
        before the new one is written. The move is destructive: if the second
        write fails, the old document is already gone.

        Args:
            name: Display name the record is stored under
            record: Complete detail record (replaces any stored document)
            previous_name: Name the record was stored under before a rename

        Returns:
            True if the document was written
        """
        record_key = derive_record_key(name)
        renaming = bool(previous_name) and previous_name != name

        if self.reject_collisions and self._held_by_other_user(name, record):
            logger.warning(
                "detail_key_collision_rejected",
                record_key=record_key,
                email_address=record.email_address,
            )
            return False

        try:
            if renaming:
                old_key = derive_record_key(previous_name)
                if old_key != record_key:
                    self.store.remove_item(self.storage_key(previous_name))
                index = self._read_index()
                index.pop(previous_name, None)
                self.store.set_item(INDEX_KEY, json.dumps(index))
                logger.info(
                    "detail_record_moved", old_key=old_key, new_key=record_key
                )

            self.store.set_item(
                self.storage_key(name), json.dumps(record.model_dump(), indent=2)
            )

            index = self._read_index()
            index[name] = record_key
            self.store.set_item(INDEX_KEY, json.dumps(index))
        except StorageError as e:
            logger.error("detail_record_save_failed", record_key=record_key, error=str(e))
            return False

        logger.info("detail_record_saved", record_key=record_key)
        return True

    async def load(self, name: str) -> Optional[UserDetailRecord]:
        """
        Load the document stored for ``name``.

        Returns:
            UserDetailRecord, or None if absent or unreadable
        """
        key = self.storage_key(name)
        try:
            raw = self.store.get_item(key)
            if not raw:
                return None
            return UserDetailRecord.model_validate(json.loads(raw))
        except (StorageError, json.JSONDecodeError, ValidationError) as e:
            logger.error("detail_record_load_failed", storage_key=key, error=str(e))
            return None

    async def list_all(self) -> list[UserDetailRecord]:
        """Load every indexed detail document, skipping unreadable ones."""
        records = []
        for name in self._read_index():
            record = await self.load(name)
            if record is not None:
                records.append(record)
        return records

    async def export_user(self, name: str, path: Path) -> bool:
        """
        Write one user's document to ``path`` as pretty JSON.

        Returns:
            False if the user has no document
        """
        record = await self.load(name)
        if record is None:
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record.model_dump(), f, indent=2)
        return True

    async def export_all(self, path: Path) -> int:
        """
        Write every document to ``path`` as JSON Lines.

        Returns:
            Number of records written
        """
        records = await self.list_all()
        path.parent.mkdir(parents=True, exist_ok=True)
        with jsonlines.open(path, mode="w") as writer:
            for record in records:
                writer.write(record.model_dump())
        return len(records)

    def _held_by_other_user(self, name: str, record: UserDetailRecord) -> bool:
        try:
            raw = self.store.get_item(self.storage_key(name))
            if not raw:
                return False
            existing = json.loads(raw)
        except (StorageError, json.JSONDecodeError):
            return False
        if not isinstance(existing, dict):
            return False

        owner = str(existing.get("email_address", ""))
        return bool(owner) and owner.lower() != record.email_address.lower()

    def _read_index(self) -> dict[str, str]:
        try:
            raw = self.store.get_item(INDEX_KEY)
            index = json.loads(raw) if raw else {}
        except (StorageError, json.JSONDecodeError) as e:
            logger.warning("detail_index_unreadable", error=str(e))
            return {}
        return index if isinstance(index, dict) else {}
