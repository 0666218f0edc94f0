"""
Unit tests for application wiring.
"""

import json

import pytest

from careerfeed.app import CareerFeedApp, build_store
from careerfeed.models.config import AppSettings, StorageConfig
from careerfeed.storage.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore
from careerfeed.sync_engine import JOURNAL_KEY
from careerfeed.utils.validator import ConfigurationError


class TestBuildStore:
    """Test cases for backend selection."""

    def test_memory_backend(self):
        """Test that the memory backend gives an in-memory store."""
        store = build_store(AppSettings(storage=StorageConfig(backend="memory")))
        assert isinstance(store, InMemoryKeyValueStore)
        assert not isinstance(store, JsonFileKeyValueStore)

    def test_file_backend(self, tmp_path):
        """Test that the file backend opens the configured path."""
        settings = AppSettings(
            storage=StorageConfig(backend="file", path=str(tmp_path / "store.json"))
        )
        assert isinstance(build_store(settings), JsonFileKeyValueStore)


class TestStartup:
    """Test cases for application startup."""

    @pytest.mark.asyncio
    async def test_startup_creates_admin(self, app):
        """Test that startup bootstraps the admin row."""
        await app.startup()

        admin = await app.master.find_by_email("admin")
        assert admin is not None
        assert admin.password == "admin"

    @pytest.mark.asyncio
    async def test_startup_replays_staged_write(self, settings, ada_payload):
        """Test that a staged dual write is finished on startup."""
        # Arrange
        settings.sync.write_ahead_journal = True
        store = InMemoryKeyValueStore()
        store.set_item(
            JOURNAL_KEY,
            json.dumps(
                {"record": ada_payload, "previous_name": None, "previous_resource_path": None}
            ),
        )
        app = CareerFeedApp(settings=settings, store=store)

        # Act
        await app.startup()

        # Assert
        assert store.get_item(JOURNAL_KEY) is None
        assert (await app.details.load("Ada Lovelace")).skills == ["Python"]
        assert await app.master.find_by_email("ada@x.test") is not None


class TestFromConfig:
    """Test cases for building an app from a settings file."""

    def test_from_config(self, tmp_path):
        """Test wiring from a validated settings file."""
        # Arrange
        path = tmp_path / "app_settings.json"
        path.write_text(
            json.dumps(
                {
                    "storage": {"backend": "memory"},
                    "baseline": {"sources": []},
                    "sync": {"reject_key_collisions": False},
                    "log_level": "WARNING",
                }
            ),
            encoding="utf-8",
        )

        # Act
        app = CareerFeedApp.from_config(path, env_file=None)

        # Assert
        assert isinstance(app.store, InMemoryKeyValueStore)
        assert app.master.baseline is None
        assert app.details.reject_collisions is False

    def test_from_config_rejects_unknown_keys(self, tmp_path):
        """Test that schema validation runs before loading."""
        path = tmp_path / "app_settings.json"
        path.write_text(json.dumps({"storage": {"backnd": "memory"}}), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            CareerFeedApp.from_config(path, env_file=None)


class TestRecommendations:
    """Test cases for scoring the catalog against the session user."""

    @pytest.mark.asyncio
    async def test_recommendations_for_logged_in_user(self, tmp_path, settings, ada_payload):
        """Test that the logged-in user's skills drive the ranking."""
        # Arrange
        catalog_path = tmp_path / "careers.json"
        catalog_path.write_text(
            json.dumps(
                [
                    {"id": "c2", "title": "Frontend Developer", "skills": ["React"]},
                    {"id": "c1", "title": "Junior Data Analyst", "skills": ["Python", "SQL"]},
                ]
            ),
            encoding="utf-8",
        )
        settings.catalog_path = str(catalog_path)
        app = CareerFeedApp(settings=settings, store=InMemoryKeyValueStore())
        await app.engine.sync_user(ada_payload)
        await app.auth.login_user("ada@x.test", "secret1")

        # Act
        ranked = app.recommendations()

        # Assert
        assert [c.id for c in ranked] == ["c1", "c2"]
        assert ranked[0].matched_skills == ["Python"]

    def test_recommendations_without_session(self, tmp_path, settings):
        """Test that an anonymous visitor gets the catalog unscored."""
        catalog_path = tmp_path / "careers.json"
        catalog_path.write_text(json.dumps([{"id": "c1", "title": "Analyst"}]), encoding="utf-8")
        settings.catalog_path = str(catalog_path)
        app = CareerFeedApp(settings=settings, store=InMemoryKeyValueStore())

        ranked = app.recommendations()

        assert [(c.id, c.score) for c in ranked] == [("c1", 0)]
