"""
Integration Test Configuration

File-backed settings for end-to-end flows through the real stores. Tests
marked slow (real debounce timers, restarts) are skipped when CI=true.
"""

import os

import pytest

from careerfeed.models.config import (
    AppSettings,
    BaselineConfig,
    StorageConfig,
    SyncConfig,
)

BASELINE_CSV = (
    "full_name,email_address,password,gender,country,year,profile_picture,"
    "recommendations_selected,bio\n"
    "Rahim Uddin,rahim@example.com,rahim123,male,Bangladesh,1998,"
    "Faces/02_male_1998.jpg.jpg,,\n"
    "Tanvir Hasan,tanvir@example.com,tanvir99,male,Bangladesh,2000,,,\n"
)


@pytest.fixture
def is_ci_environment() -> bool:
    """True when the CI environment variable is 'true'."""
    return os.getenv("CI", "").lower() == "true"


@pytest.fixture(autouse=True)
def skip_slow_tests_in_ci(request, is_ci_environment):
    """Skip @pytest.mark.slow tests in CI."""
    if is_ci_environment and request.node.get_closest_marker("slow"):
        pytest.skip("Skipping slow test in CI environment")


@pytest.fixture
def file_settings(tmp_path) -> AppSettings:
    """
    Settings with a JSON-file store and a CSV baseline under tmp_path.

    The same settings object can be used to build several apps, which then
    behave like successive runs of the program.
    """
    baseline = tmp_path / "baseline_users.csv"
    baseline.write_text(BASELINE_CSV, encoding="utf-8")
    return AppSettings(
        storage=StorageConfig(backend="file", path=str(tmp_path / "local_store.json")),
        baseline=BaselineConfig(sources=[str(baseline)]),
        sync=SyncConfig(debounce_seconds=0.05, write_ahead_journal=True),
    )
