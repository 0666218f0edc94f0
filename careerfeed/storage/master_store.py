"""
Tabular Master Store Module

Summary rows of every user, one per email address. The rows double as the
login and signup-uniqueness index.

Reads merge two layers:
    baseline   immutable seed CSV (see baseline.py)
    local      rows written by this app, key ``csv_users`` in the key-value store

Baseline order is kept, a local row replaces the baseline row with the same
email, and local-only rows follow. When the baseline cannot be loaded the
local layer is returned with duplicate emails dropped. Writes persist the
merged list to the local layer.

Example Usage:
    master = MasterStore(store, baseline=BaselineLoader(["data/baseline_users.csv"]))

    row = await master.find_by_email("ada@x.test")
    await master.replace_at(lambda r: r.matches_email("ada@x.test"), updated_row)
"""

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pandas as pd
from pydantic import ValidationError

from careerfeed.models.user import SUMMARY_COLUMNS, UserSummaryRecord, migrate_legacy_row
from careerfeed.storage.baseline import BaselineLoader, BaselineUnavailableError
from careerfeed.storage.kv_store import KeyValueStore, StorageError
from careerfeed.utils.logger import get_logger

LOCAL_ROWS_KEY = "csv_users"
DELETED_RESOURCES_KEY = "deleted_images"

logger: Any = get_logger(
    correlation_id="master-store",
    phase="storage",
    component="master_store",
)


class MasterStore:
    """Adapter for the tabular summary store."""

    def __init__(
        self,
        store: KeyValueStore,
        baseline: Optional[BaselineLoader] = None,
        avatar_assigner: Optional[Callable[[str, str], str]] = None,
    ):
        """
        Initialize master store.

        Args:
            store: Backing key-value store holding the local layer
            baseline: Loader for the seed dataset (None = local layer only)
            avatar_assigner: Returns a resource path for a gender and email; used
                to fill rows that have no profile picture when they are read.
                It must give the same path for the same email on every call
        """
        self.store = store
        self.baseline = baseline
        self.avatar_assigner = avatar_assigner

    async def read_all(self) -> list[UserSummaryRecord]:
        """
        Return every summary row, baseline first.

        Never raises; returns an empty list when nothing can be read.
        """
        try:
            rows = await self._merged_rows()
        except Exception as e:
            logger.error("read_all_failed", error=str(e))
            return []

        return [self._with_avatar(row) for row in rows]

    async def find_by_email(self, email: str) -> Optional[UserSummaryRecord]:
        for row in await self.read_all():
            if row.matches_email(email):
                return row
        return None

    async def find_by_name(self, name: str) -> Optional[UserSummaryRecord]:
        for row in await self.read_all():
            if row.matches_name(name):
                return row
        return None

    async def append(self, record: UserSummaryRecord) -> bool:
        """
        Add one row. The caller must have checked that the email is new.

        Returns:
            True if the row was persisted
        """
        rows = await self._merged_rows()
        rows.append(record)
        try:
            self._write_local(rows)
        except StorageError as e:
            logger.error(
                "summary_append_failed", email_address=record.email_address, error=str(e)
            )
            return False

        logger.info("summary_row_appended", email_address=record.email_address)
        return True

    async def replace_at(
        self,
        predicate: Callable[[UserSummaryRecord], bool],
        record: UserSummaryRecord,
    ) -> bool:
        """
        Overwrite the first row matching ``predicate`` with ``record``.

        The whole row is replaced; nothing from the old row is kept.

        Returns:
            False if no row matched or the write failed
        """
        rows = await self._merged_rows()
        for index, row in enumerate(rows):
            if predicate(row):
                rows[index] = record
                break
        else:
            logger.debug("summary_replace_no_match", email_address=record.email_address)
            return False

        try:
            self._write_local(rows)
        except StorageError as e:
            logger.error(
                "summary_replace_failed", email_address=record.email_address, error=str(e)
            )
            return False

        logger.info("summary_row_replaced", email_address=record.email_address)
        return True

    def mark_resource_deleted(self, resource_path: str) -> bool:
        """
        Record a resource reference as pending deletion.

        Only the reference is tracked; the asset itself is left in place.

        Returns:
            False if the tracking list could not be written
        """
        if not resource_path:
            return False

        pending = self.deleted_resources()
        if resource_path in pending:
            return True

        pending.append(resource_path)
        try:
            self.store.set_item(DELETED_RESOURCES_KEY, json.dumps(pending))
        except StorageError as e:
            logger.error(
                "resource_deletion_tracking_failed",
                resource_path=resource_path,
                error=str(e),
            )
            return False

        logger.info("resource_marked_deleted", resource_path=resource_path)
        return True

    def deleted_resources(self) -> list[str]:
        try:
            raw = self.store.get_item(DELETED_RESOURCES_KEY)
            pending = json.loads(raw) if raw else []
        except (StorageError, json.JSONDecodeError):
            return []
        return [str(path) for path in pending] if isinstance(pending, list) else []

    async def to_csv(self) -> str:
        """Render the stored rows as CSV with the fixed column order."""
        rows = await self._merged_rows()
        frame = pd.DataFrame(
            [row.model_dump() for row in rows], columns=SUMMARY_COLUMNS
        )
        return frame.to_csv(index=False)

    async def export_csv(self, path: Path) -> int:
        """
        Write the stored rows to a CSV file.

        Returns:
            Number of rows written
        """
        text = await self.to_csv()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return max(len(text.splitlines()) - 1, 0)

    async def _merged_rows(self) -> list[UserSummaryRecord]:
        local = self._read_local()
        if self.baseline is None:
            return self._dedupe(local)

        try:
            baseline = await self.baseline.load()
        except BaselineUnavailableError as e:
            logger.warning("baseline_unavailable_using_local", error=str(e))
            return self._dedupe(local)

        local_by_email = {row.email_address.lower(): row for row in local}
        merged: list[UserSummaryRecord] = []
        seen: set[str] = set()

        for row in baseline:
            email = row.email_address.lower()
            if email in seen:
                continue
            merged.append(local_by_email.get(email, row))
            seen.add(email)

        for row in local:
            email = row.email_address.lower()
            if email not in seen:
                merged.append(row)
                seen.add(email)

        return merged

    def _read_local(self) -> list[UserSummaryRecord]:
        try:
            raw = self.store.get_item(LOCAL_ROWS_KEY)
            data = json.loads(raw) if raw else []
        except (StorageError, json.JSONDecodeError) as e:
            logger.error("local_rows_unreadable", error=str(e))
            return []

        if not isinstance(data, list):
            logger.error("local_rows_malformed", value_type=type(data).__name__)
            return []

        rows = []
        for item in data:
            if not isinstance(item, dict):
                continue
            migrated = migrate_legacy_row(item)
            if not migrated.get("email_address"):
                continue
            try:
                rows.append(UserSummaryRecord.model_validate(migrated))
            except ValidationError as e:
                logger.warning("local_row_skipped", error=str(e))
        return rows

    def _write_local(self, rows: list[UserSummaryRecord]) -> None:
        payload = json.dumps([row.model_dump() for row in rows])
        self.store.set_item(LOCAL_ROWS_KEY, payload)

    def _with_avatar(self, row: UserSummaryRecord) -> UserSummaryRecord:
        if row.profile_picture or self.avatar_assigner is None:
            return row
        return row.model_copy(
            update={
                "profile_picture": self.avatar_assigner(row.gender, row.email_address)
            }
        )

    @staticmethod
    def _dedupe(rows: list[UserSummaryRecord]) -> list[UserSummaryRecord]:
        seen: set[str] = set()
        unique = []
        for row in rows:
            email = row.email_address.lower()
            if email not in seen:
                unique.append(row)
                seen.add(email)
        return unique
