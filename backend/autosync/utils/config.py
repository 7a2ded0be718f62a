"""
AutoSync Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


# Below this the upstream watcher's own event coalescing is not settled yet
MIN_ACTION_INTERVAL_MS = 550


class WatcherSettings(BaseSettings):
    """File watcher and batching settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    action_interval_ms: int = Field(
        default=MIN_ACTION_INTERVAL_MS,
        ge=MIN_ACTION_INTERVAL_MS,
        le=60_000,
        description="Quiet period between batched sync actions",
    )
    recursive: bool = Field(default=True)
    observer_join_timeout: float = Field(default=5.0, ge=0.0)

    ignore_patterns: Annotated[list[str], NoDecode] = Field(
        default=[
            ".git",
            ".svn",
            ".hg",
            ".DS_Store",
            "__pycache__",
            "node_modules",
            "*.swp",
            "*.tmp",
            "*.part",
            "~$*",
        ],
        description="Path components or glob patterns never synchronized",
    )

    @field_validator("ignore_patterns", mode="before")
    @classmethod
    def parse_ignore_patterns(cls, v: str | list[str]) -> list[str]:
        """Parse ignore patterns from comma-separated string or list."""
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v


class StatusSettings(BaseSettings):
    """Transient status message settings."""

    model_config = SettingsConfigDict(env_prefix="STATUS_")

    success_duration_ms: int = Field(default=2000, ge=0)
    failure_duration_ms: int = Field(default=4000, ge=0)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="json")  # "json" or "console"
    file_path: Path | None = Field(default=None)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Reject names the logging module does not know."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="AutoSync")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    status: StatusSettings = Field(default_factory=StatusSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    Call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()
