"""Current-user session state, kept in the key-value store."""

import json
from typing import Any, Optional

from pydantic import ValidationError

from careerfeed.models.user import SessionUser
from careerfeed.services.avatars import AvatarCatalog
from careerfeed.storage.kv_store import KeyValueStore, StorageError
from careerfeed.utils.logger import get_logger

SESSION_KEY = "currentUser"

logger: Any = get_logger(
    correlation_id="session",
    phase="auth",
    component="session_manager",
)


class SessionManager:
    """Holds the authenticated user's merged view until logout."""

    def __init__(self, store: KeyValueStore, avatars: AvatarCatalog):
        self.store = store
        self.avatars = avatars

    def save(self, user: SessionUser) -> bool:
        try:
            self.store.set_item(SESSION_KEY, user.model_dump_json())
        except StorageError as e:
            logger.error("session_save_failed", email_address=user.email_address, error=str(e))
            return False
        logger.info("session_saved", email_address=user.email_address)
        return True

    def current(self) -> Optional[SessionUser]:
        """Return the session user with avatar metadata resolved, or None."""
        try:
            raw = self.store.get_item(SESSION_KEY)
            if not raw:
                return None
            data = self.avatars.with_avatar_metadata(json.loads(raw))
            return SessionUser.model_validate(data)
        except (StorageError, json.JSONDecodeError, ValidationError) as e:
            logger.error("session_unreadable", error=str(e))
            return None

    def clear(self) -> None:
        try:
            self.store.remove_item(SESSION_KEY)
        except StorageError as e:
            logger.error("session_clear_failed", error=str(e))
            return
        logger.info("session_cleared")
