"""
Application Wiring Module

Builds the stores, the sync engine and the services from one AppSettings
object. Pages and scripts get everything they need from a CareerFeedApp.

Example Usage:
    from careerfeed.app import CareerFeedApp

    app = CareerFeedApp.from_config("config/app_settings.json")
    await app.startup()

    result = await app.auth.register_user(
        "Ada Lovelace", "ada@x.test", "secret1", "secret1", "female", "1815", "UK"
    )
"""

import random
from pathlib import Path
from typing import Any, Optional

from careerfeed.models.career import CareerEntry, ScoredCareer
from careerfeed.models.config import AppSettings
from careerfeed.services.auth_service import AuthService
from careerfeed.services.avatars import AvatarCatalog
from careerfeed.services.matching import load_catalog, score_careers
from careerfeed.services.profile_service import ProfileService
from careerfeed.services.session import SessionManager
from careerfeed.storage.baseline import BaselineLoader
from careerfeed.storage.detail_store import DetailStore
from careerfeed.storage.kv_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from careerfeed.storage.master_store import MasterStore
from careerfeed.sync_engine import SyncEngine
from careerfeed.utils.logger import configure_logging, get_logger
from careerfeed.utils.validator import ConfigValidator

logger: Any = get_logger(
    correlation_id="app",
    phase="startup",
    component="careerfeed_app",
)


def build_store(settings: AppSettings) -> KeyValueStore:
    """Create the key-value store selected in the settings."""
    if settings.storage.backend == "memory":
        return InMemoryKeyValueStore(quota_bytes=settings.storage.quota_bytes)
    return JsonFileKeyValueStore(
        settings.storage.path, quota_bytes=settings.storage.quota_bytes
    )


class CareerFeedApp:
    """Holds one wired instance of every component."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        store: Optional[KeyValueStore] = None,
        baseline: Optional[BaselineLoader] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Wire the components.

        Args:
            settings: Application settings (defaults if None)
            store: Key-value store to use instead of the configured backend
            baseline: Baseline loader to use instead of the configured sources
            rng: Random source for avatar assignment
        """
        self.settings = settings or AppSettings()
        self.store = store if store is not None else build_store(self.settings)

        self.avatars = AvatarCatalog(
            base_url=self.settings.avatars.base_url,
            resource_prefix=self.settings.avatars.resource_prefix,
            rng=rng,
        )
        if baseline is None and self.settings.baseline.sources:
            baseline = BaselineLoader(
                self.settings.baseline.sources,
                timeout=self.settings.baseline.timeout,
                retry_attempts=self.settings.baseline.retry_attempts,
            )

        self.master = MasterStore(
            self.store, baseline=baseline, avatar_assigner=self.avatars.stable_resource
        )
        self.details = DetailStore(
            self.store, reject_collisions=self.settings.sync.reject_key_collisions
        )
        self.engine = SyncEngine(
            self.master,
            self.details,
            list_delimiter=self.settings.sync.list_delimiter,
            write_ahead_journal=self.settings.sync.write_ahead_journal,
        )
        self.sessions = SessionManager(self.store, self.avatars)
        self.auth = AuthService(
            self.engine,
            self.master,
            self.details,
            self.sessions,
            self.avatars,
            admin=self.settings.admin,
        )
        self.profiles = ProfileService(
            self.engine,
            self.details,
            self.sessions,
            debounce_seconds=self.settings.sync.debounce_seconds,
        )
        self._catalog: Optional[list[CareerEntry]] = None

    @classmethod
    def from_config(
        cls,
        config_path: Path | str,
        env_file: Path | str | None = ".env",
        validate: bool = True,
    ) -> "CareerFeedApp":
        """
        Build an app from a settings file.

        Args:
            config_path: Path to app_settings.json
            env_file: .env file with admin credential overrides
            validate: Check the file against the settings schema first

        Raises:
            ConfigurationError: If schema validation fails
            FileNotFoundError: If the settings file is missing
        """
        config_path = Path(config_path)
        if validate:
            ConfigValidator().validate_settings(config_path)

        settings = AppSettings.load(config_path, env_file=env_file)
        configure_logging(log_level=settings.log_level)
        return cls(settings=settings)

    async def startup(self) -> None:
        """Replay any interrupted dual write and make sure the admin exists."""
        replayed = await self.engine.recover_pending()
        if replayed is not None:
            logger.info("pending_sync_replayed", ok=replayed.ok)
        await self.auth.initialize_admin_user()

    @property
    def catalog(self) -> list[CareerEntry]:
        if self._catalog is None:
            self._catalog = load_catalog(self.settings.catalog_path)
        return self._catalog

    def recommendations(self) -> list[ScoredCareer]:
        """Score the catalog against the logged-in user's profile."""
        user = self.auth.get_current_user()
        profile = user.model_dump() if user is not None else {}
        return score_careers(profile, self.catalog)
