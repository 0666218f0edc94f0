"""
Synchronization Engine Module

Single entry point for mutating user data. Every write goes to both stores:
the detail document first, then the summary row, so the two stay consistent.

Each call replaces the user's data as a whole. Callers that want to change a
few fields load the detail record, change it and pass the complete result
back (read-modify-write).

Example Usage:
    engine = SyncEngine(master_store, detail_store)

    await engine.check_exists("Ada Lovelace", "ada@x.test")
    await engine.sync_user({"full_name": "Ada Lovelace", "email_address": "ada@x.test"})

    # Rename: the detail document moves to the new key
    await engine.sync_user(updated_payload, previous_name="Ada Lovelace")
"""

import json
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from careerfeed.models.user import (
    DEFAULT_LIST_DELIMITER,
    ExistenceCheck,
    SyncResult,
    UserDetailRecord,
    UserSummaryRecord,
)
from careerfeed.storage.detail_store import DetailStore
from careerfeed.storage.kv_store import StorageError
from careerfeed.storage.master_store import MasterStore
from careerfeed.utils.logger import get_logger

JOURNAL_KEY = "sync_journal"

logger: Any = get_logger(
    correlation_id="sync-engine",
    phase="sync",
    component="sync_engine",
)


class SyncEngine:
    """Coordinates dual writes across the master and detail stores."""

    def __init__(
        self,
        master: MasterStore,
        details: DetailStore,
        list_delimiter: str = DEFAULT_LIST_DELIMITER,
        write_ahead_journal: bool = False,
    ):
        """
        Initialize sync engine.

        Args:
            master: Tabular summary store
            details: Per-user detail store
            list_delimiter: Separator for list fields flattened into summary rows
            write_ahead_journal: Stage each call so an interrupted dual write
                can be replayed with recover_pending()
        """
        self.master = master
        self.details = details
        self.list_delimiter = list_delimiter
        self.write_ahead_journal = write_ahead_journal

    async def sync_user(
        self,
        payload: Mapping[str, Any] | UserDetailRecord,
        previous_name: Optional[str] = None,
        previous_resource_path: Optional[str] = None,
    ) -> bool:
        """
        Write a complete user payload to both stores.

        Args:
            payload: Authoritative user data; missing fields are reset to defaults
            previous_name: Name the detail record was stored under before a rename
            previous_resource_path: Profile picture path before this change

        Returns:
            True if the detail record was written. A failed summary write is
            not reflected here; use sync_user_detailed() to see it.
        """
        result = await self.sync_user_detailed(
            payload, previous_name, previous_resource_path
        )
        return result.valid and result.detail_saved

    async def sync_user_detailed(
        self,
        payload: Mapping[str, Any] | UserDetailRecord,
        previous_name: Optional[str] = None,
        previous_resource_path: Optional[str] = None,
    ) -> SyncResult:
        """
        Write a complete user payload to both stores, reporting each half.

        Steps:
            1. Reject payloads without a name or email (nothing is written)
            2. Build the full detail record, defaulting every missing field
            3. Save the detail record, moving it if the name changed
            4. Flatten it into a summary row
            5. Replace the row with the same email, or append a new row;
               a changed profile picture queues the old one for deletion

        There is no rollback: if step 5 fails, the detail write from step 3
        stands.

        Returns:
            SyncResult describing which writes succeeded
        """
        record = UserDetailRecord.from_payload(payload)
        if not record.has_identity():
            logger.error(
                "sync_rejected_missing_identity",
                has_name=bool(record.full_name.strip()),
                has_email=bool(record.email_address.strip()),
            )
            return SyncResult(valid=False)

        if self.write_ahead_journal:
            self._stage(record, previous_name, previous_resource_path)

        result = await self._dual_write(record, previous_name, previous_resource_path)

        if self.write_ahead_journal and not await self._needs_replay(
            result, record, previous_name
        ):
            self._clear_journal()

        return result

    async def check_exists(self, name: str, email: str) -> ExistenceCheck:
        """
        Probe the master store for an existing account.

        Used as the signup gate; this engine does not enforce it itself.
        """
        by_name = await self.master.find_by_name(name) is not None
        by_email = await self.master.find_by_email(email) is not None
        return ExistenceCheck(
            exists=by_name or by_email, by_name=by_name, by_email=by_email
        )

    async def recover_pending(self) -> Optional[SyncResult]:
        """
        Replay a dual write staged by a process that stopped mid-way.

        Returns:
            Result of the replay, or None if nothing was staged
        """
        entry = self._read_journal()
        if entry is None:
            return None

        try:
            record = UserDetailRecord.model_validate(entry["record"])
        except ValidationError as e:
            logger.error("sync_journal_record_invalid", error=str(e))
            self._clear_journal()
            return None

        if not record.has_identity():
            logger.error("sync_journal_record_invalid", error="missing name or email")
            self._clear_journal()
            return None

        logger.warning("replaying_staged_sync", email_address=record.email_address)
        result = await self._dual_write(
            record,
            entry.get("previous_name"),
            entry.get("previous_resource_path"),
        )
        if result.ok:
            self._clear_journal()
        return result

    async def _dual_write(
        self,
        record: UserDetailRecord,
        previous_name: Optional[str],
        previous_resource_path: Optional[str],
    ) -> SyncResult:
        email = record.email_address
        detail_saved = await self.details.save(record.full_name, record, previous_name)
        if not detail_saved:
            # A summary row without its detail record would block re-registration
            logger.error("dual_write_aborted_detail_failed", email_address=email)
            return SyncResult(valid=True, detail_saved=False, summary_saved=False)

        summary = UserSummaryRecord.from_detail(record, delimiter=self.list_delimiter)
        existing = await self.master.find_by_email(email)

        if existing is not None:
            summary_saved = await self.master.replace_at(
                lambda row: row.matches_email(email), summary
            )
            if (
                summary_saved
                and previous_resource_path
                and previous_resource_path != summary.profile_picture
            ):
                self.master.mark_resource_deleted(previous_resource_path)
        else:
            summary_saved = await self.master.append(summary)

        result = SyncResult(
            valid=True,
            detail_saved=detail_saved,
            summary_saved=summary_saved,
            created=existing is None,
        )

        if result.ok:
            logger.info(
                "dual_write_complete",
                email_address=email,
                created=result.created,
                renamed=bool(previous_name) and previous_name != record.full_name,
            )
        else:
            logger.error(
                "dual_write_incomplete",
                email_address=email,
                detail_saved=detail_saved,
                summary_saved=summary_saved,
            )
        return result

    async def _needs_replay(
        self,
        result: SyncResult,
        record: UserDetailRecord,
        previous_name: Optional[str],
    ) -> bool:
        """
        Whether a staged write must survive for recover_pending().

        A failed summary half always does. A failed detail half normally
        wrote nothing, except for a rename whose old document was removed
        before the new one could be written; the staged entry is then the
        only copy of the record.
        """
        if result.ok:
            return False
        if result.detail_saved:
            return True
        if not previous_name or previous_name == record.full_name:
            return False
        if self.details.storage_key(previous_name) == self.details.storage_key(
            record.full_name
        ):
            return False
        return await self.details.load(previous_name) is None

    def _stage(
        self,
        record: UserDetailRecord,
        previous_name: Optional[str],
        previous_resource_path: Optional[str],
    ) -> None:
        entry = {
            "record": record.model_dump(),
            "previous_name": previous_name,
            "previous_resource_path": previous_resource_path,
        }
        try:
            self.details.store.set_item(JOURNAL_KEY, json.dumps(entry))
        except StorageError as e:
            logger.error("sync_journal_stage_failed", error=str(e))

    def _read_journal(self) -> Optional[dict[str, Any]]:
        try:
            raw = self.details.store.get_item(JOURNAL_KEY)
            entry = json.loads(raw) if raw else None
        except (StorageError, json.JSONDecodeError) as e:
            logger.error("sync_journal_unreadable", error=str(e))
            return None
        if not isinstance(entry, dict) or not isinstance(entry.get("record"), dict):
            return None
        return entry

    def _clear_journal(self) -> None:
        try:
            self.details.store.remove_item(JOURNAL_KEY)
        except StorageError as e:
            logger.error("sync_journal_clear_failed", error=str(e))
