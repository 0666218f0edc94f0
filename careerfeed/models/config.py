"""
Configuration Models

Pydantic models for application settings validation.
"""

import json
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ADMIN_EMAIL_ENV = "CAREERFEED_ADMIN_EMAIL"
ADMIN_PASSWORD_ENV = "CAREERFEED_ADMIN_PASSWORD"


class StorageConfig(BaseModel):
    """Key-value store backend selection."""

    backend: Literal["memory", "file"] = "file"
    path: str = Field(default="data/local_store.json")
    quota_bytes: Optional[int] = Field(default=None, gt=0)


class BaselineConfig(BaseModel):
    """Baseline summary dataset sources, tried in order."""

    sources: list[str] = Field(default_factory=lambda: ["data/baseline_users.csv"])
    timeout: int = Field(default=10, gt=0)
    retry_attempts: int = Field(default=3, gt=0, le=10)


class SyncConfig(BaseModel):
    """Dual-write behaviour."""

    write_ahead_journal: bool = Field(
        default=False,
        description="Stage each dual write so an interrupted one can be replayed",
    )
    reject_key_collisions: bool = Field(
        default=True,
        description="Refuse a detail write whose key belongs to another email",
    )
    debounce_seconds: float = Field(default=0.5, ge=0.0, le=10.0)
    list_delimiter: str = Field(default="; ", min_length=1)


class AvatarConfig(BaseModel):
    """Avatar resource resolution."""

    base_url: str = "/assets/faces"
    resource_prefix: str = "Faces/"


class AdminConfig(BaseModel):
    """Bootstrap admin account, written to the summary store only."""

    email: str = "admin"
    password: str = "admin"
    full_name: str = "Admin"
    gender: str = "male"
    year: str = "1990"
    country: str = "Bangladesh"


class AppSettings(BaseModel):
    """Application settings model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    baseline: BaselineConfig = Field(default_factory=BaselineConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    avatars: AvatarConfig = Field(default_factory=AvatarConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    catalog_path: str = Field(default="data/careers.json")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    def apply_env_overrides(self) -> "AppSettings":
        """Take admin credentials from the environment when present."""
        email = os.getenv(ADMIN_EMAIL_ENV)
        password = os.getenv(ADMIN_PASSWORD_ENV)
        if email:
            self.admin.email = email
        if password:
            self.admin.password = password
        return self

    @classmethod
    def load(
        cls,
        config_path: Path | str | None = None,
        env_file: Path | str | None = None,
    ) -> "AppSettings":
        """Load application settings from config file.

        Args:
            config_path: Path to app_settings.json (defaults to config/app_settings.json)
            env_file: Optional .env file with admin credential overrides

        Returns:
            AppSettings: Validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config validation fails
        """
        if config_path is None:
            config_path = Path("config/app_settings.json")
        else:
            config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}. "
                f"Copy {config_path.stem}.example.json to {config_path.name}"
            )

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)

        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file)

        return cls(**config_data).apply_env_overrides()
