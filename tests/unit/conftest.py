"""
Unit Test Configuration

Shared fixtures: an in-memory key-value store, a store whose writes can be
made to fail per key prefix, and the adapters and engine wired on top.
"""

import random

import pytest

from careerfeed.app import CareerFeedApp
from careerfeed.models.config import (
    AppSettings,
    BaselineConfig,
    StorageConfig,
    SyncConfig,
)
from careerfeed.services.avatars import AvatarCatalog
from careerfeed.storage.detail_store import DetailStore
from careerfeed.storage.kv_store import InMemoryKeyValueStore, StorageError
from careerfeed.storage.master_store import MasterStore
from careerfeed.sync_engine import SyncEngine


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store that refuses writes to keys with a failing prefix."""

    def __init__(self):
        super().__init__()
        self.failing_prefixes: set[str] = set()

    def set_item(self, key: str, value: str) -> None:
        if any(key.startswith(prefix) for prefix in self.failing_prefixes):
            raise StorageError(f"Write to {key} refused")
        super().set_item(key, value)


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def flaky_store():
    """In-memory store with switchable write failures."""
    return FlakyStore()


@pytest.fixture
def avatars():
    """Avatar catalog with a seeded random source."""
    return AvatarCatalog(rng=random.Random(7))


@pytest.fixture
def master(store, avatars):
    """Master store over the in-memory store, no baseline."""
    return MasterStore(store, avatar_assigner=avatars.stable_resource)


@pytest.fixture
def details(store):
    """Detail store over the in-memory store."""
    return DetailStore(store)


@pytest.fixture
def engine(master, details):
    """Sync engine over the in-memory stores."""
    return SyncEngine(master, details)


@pytest.fixture
def ada_payload():
    """Complete payload for a user with a populated profile."""
    return {
        "full_name": "Ada Lovelace",
        "email_address": "ada@x.test",
        "password": "secret1",
        "gender": "female",
        "country": "UK",
        "year": "1815",
        "education": "Private tutoring",
        "interests": ["Mathematics", "Engineering"],
        "custom_interest": "",
        "skills": ["Python"],
        "custom_skill": "",
        "profile_picture": "Faces/01_female_2001.jpg.jpg",
        "bio": "Analyst of engines",
        "recommendations_saved": ["c1"],
        "recommendations_selected": ["Junior Data Analyst"],
        "recommendations_rejected": [],
    }


@pytest.fixture
def settings():
    """Settings for a self-contained app: memory store, no baseline, short debounce."""
    return AppSettings(
        storage=StorageConfig(backend="memory"),
        baseline=BaselineConfig(sources=[]),
        sync=SyncConfig(debounce_seconds=0.01),
    )


@pytest.fixture
def app(settings):
    """Fully wired application over an in-memory store."""
    return CareerFeedApp(
        settings=settings, store=InMemoryKeyValueStore(), rng=random.Random(3)
    )
