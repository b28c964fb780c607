"""featureboard settings, loaded from the environment and ``.env``.

Nested values use a double underscore: ``DATABASE__URL``,
``BOARD__ACTIVATION_DISTANCE``, ``DEV__MEMORY_STORE``. Application code
reads them through ``get_settings()``; tests build ``Settings(_env_file=None)``
so a developer's ``.env`` cannot leak in.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/featureboard/config.py -> project root
_PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Owner of the board served at "/". There is no login in front of it.
DEMO_OWNER_ID = UUID("00000000-0000-4000-8000-000000000001")


class DatabaseConfig(BaseModel):
    """Feature store connection. Unset means the in-memory demo board."""

    url: str | None = None


class AppConfig(BaseModel):
    """Web server and process settings."""

    port: int = 8080
    storage_secret: SecretStr = SecretStr("featureboard-dev-secret")
    default_owner_id: UUID = DEMO_OWNER_ID
    log_dir: Path = Path("logs")


class BoardConfig(BaseModel):
    """Drag activation thresholds and preview behaviour.

    Defaults match the web board's sensors: 8px of mouse travel, or a
    500ms touch hold that stays within 5px.
    """

    activation_distance: float = Field(default=8.0, ge=0)
    touch_delay: float = Field(default=0.5, ge=0)
    touch_tolerance: float = Field(default=5.0, ge=0)
    live_reorder_preview: bool = True


class DevConfig(BaseModel):
    """Switches for local development and the test suite."""

    database_echo: bool = False
    memory_store: bool = False
    test_database_url: str | None = None


class Settings(BaseSettings):
    """All featureboard settings, grouped by concern."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    app: AppConfig = AppConfig()
    board: BoardConfig = BoardConfig()
    dev: DevConfig = DevConfig()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide Settings; ``get_settings.cache_clear()`` resets it."""
    settings = Settings()
    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Loaded settings with .env from %s", env_file)
    else:
        logger.info("Loaded settings from the environment (no .env found)")
    return settings
