"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_bool(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "cms"))
    container: str = field(default_factory=lambda: _env("COSMOS_CONTAINER", "cms_content"))


@dataclass(frozen=True)
class SchedulerConfig:
    """Controls the in-process scheduled publish poller."""

    enabled: bool = field(default_factory=lambda: _env_bool("SCHEDULER_ENABLED"))
    interval_seconds: float = field(
        default_factory=lambda: float(_env("SCHEDULER_INTERVAL_SECONDS", "60"))
    )


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    secret_key: str = field(default_factory=lambda: _env("SESSION_SECRET_KEY"))
    host: str = field(default_factory=lambda: _env("HOST", "0.0.0.0"))  # noqa: S104
    port: int = field(default_factory=lambda: int(_env("PORT", "8000")))

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class Settings:
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    app: AppConfig = field(default_factory=AppConfig)


def load_settings() -> Settings:
    """Load `.env` (if present) and build settings from the environment."""
    load_dotenv()
    return Settings()
