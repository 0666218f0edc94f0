"""
Profile Service

Profile edits and saved-recommendation updates for the logged-in user.

Both build the complete payload the sync engine expects: the fields being
edited come from the caller, everything else from the user's stored detail
record, or from the summary row and session for users who have none yet.
Saved-recommendation updates are debounced so a burst of clicks produces one
dual write.
"""

from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field

from careerfeed.models.career import CareerEntry
from careerfeed.models.user import SessionUser, UserDetailRecord
from careerfeed.services.session import SessionManager
from careerfeed.storage.detail_store import DetailStore
from careerfeed.sync_engine import SyncEngine
from careerfeed.utils.debounce import Debouncer
from careerfeed.utils.logger import get_logger, user_action

logger: Any = get_logger(
    correlation_id="profile-service",
    phase="profile",
    component="profile_service",
)


class ProfileForm(BaseModel):
    """Fields the profile page lets the user edit."""

    full_name: str
    email_address: str = ""
    education: str = ""
    interests: list[str] = Field(default_factory=list)
    custom_interest: str = ""
    skills: list[str] = Field(default_factory=list)
    custom_skill: str = ""
    profile_picture: str = ""
    bio: str = ""


class ProfileService:
    """Reads and writes the current user's profile through the sync engine."""

    def __init__(
        self,
        engine: SyncEngine,
        details: DetailStore,
        sessions: SessionManager,
        debounce_seconds: float = 0.5,
    ):
        self.engine = engine
        self.details = details
        self.sessions = sessions
        self.debouncer = Debouncer(delay=debounce_seconds)

    async def load_profile(self) -> Optional[UserDetailRecord]:
        """Detail record of the logged-in user, or None."""
        user = self.sessions.current()
        if user is None or not user.full_name:
            return None
        return await self.details.load(user.full_name)

    async def save_profile(
        self,
        form: ProfileForm,
        original_name: Optional[str] = None,
        original_picture: Optional[str] = None,
    ) -> bool:
        """
        Save an edited profile for the logged-in user.

        Args:
            form: Edited fields; every list given here replaces the stored one
            original_name: Name the profile was loaded under
            original_picture: Profile picture the profile was loaded with

        Returns:
            True if the profile was written; False without a session or when
            the form's email address belongs to another account
        """
        user = self.sessions.current()
        if user is None or not user.email_address:
            logger.warning("profile_save_without_session")
            return False

        email = form.email_address or user.email_address
        if email.lower() != user.email_address.lower():
            owner = await self.engine.master.find_by_email(email)
            if owner is not None:
                logger.warning(
                    "profile_save_email_taken", email_address=user.email_address
                )
                return False

        stored = await self.details.load(original_name or user.full_name)
        if stored is not None:
            base = stored.model_dump()
        else:
            # Seed users only have a summary row; it carries the password
            row = await self.engine.master.find_by_email(user.email_address)
            base = {**user.model_dump(), **(row.model_dump() if row else {})}

        payload = {
            **base,
            **form.model_dump(),
            "email_address": email,
        }

        previous_name = (
            original_name if original_name and original_name != form.full_name else None
        )
        previous_picture = (
            original_picture
            if original_picture and original_picture != form.profile_picture
            else None
        )

        with user_action("profile_save", email_address=user.email_address):
            saved = await self.engine.sync_user(payload, previous_name, previous_picture)
            if not saved:
                logger.error("profile_save_failed")
                return False

            self._refresh_session(user, UserDetailRecord.from_payload(payload))
            logger.info("profile_saved", renamed=previous_name is not None)
            return True

    def schedule_saved_recommendations(
        self, saved_ids: Sequence[str], catalog: Sequence[CareerEntry]
    ) -> None:
        """Queue a debounced write of the user's saved careers."""
        ids = list(saved_ids)
        self.debouncer.schedule(lambda: self.save_recommendations(ids, catalog))

    async def flush(self) -> None:
        """Wait for any queued recommendation write to finish."""
        await self.debouncer.flush()

    async def save_recommendations(
        self, saved_ids: Sequence[str], catalog: Sequence[CareerEntry]
    ) -> bool:
        """
        Replace the user's saved careers (ids) and selected careers (titles).

        Returns:
            False if nobody is logged in or the user has no detail record
        """
        user = self.sessions.current()
        if user is None or not user.full_name:
            return False

        stored = await self.details.load(user.full_name)
        if stored is None:
            logger.warning("recommendations_without_detail_record")
            return False

        titles_by_id = {career.id: career.title for career in catalog}
        updated = stored.model_copy(
            update={
                "recommendations_selected": [
                    titles_by_id[career_id]
                    for career_id in saved_ids
                    if career_id in titles_by_id
                ],
                "recommendations_saved": list(saved_ids),
            }
        )

        with user_action("recommendations_save", email_address=user.email_address):
            saved = await self.engine.sync_user(updated)
        if saved:
            self._refresh_session(user, updated)
        return saved

    def _refresh_session(self, user: SessionUser, record: UserDetailRecord) -> None:
        data = record.model_dump(exclude={"password"})
        data["avatar"] = ""
        data["is_admin"] = user.is_admin
        self.sessions.save(SessionUser.model_validate(data))
