"""Environment-driven settings.

Centralized config using pydantic-settings.  Reads from a .env file and
RELOADFORGE_* environment variables; the CLI uses these values as the
defaults for its options.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from reloadforge.models.config import DEFAULT_INTERVAL_MS


class Settings(BaseSettings):
    """Process-wide settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export RELOADFORGE_WATCH_DIR=./src
        export RELOADFORGE_INTERVAL_MS=250
        export RELOADFORGE_LOG_LEVEL=DEBUG

    Or via .env file::

        RELOADFORGE_WATCH_DIR=./cmd/server
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RELOADFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    watch_dir: Path = Path(".")
    interval_ms: int = Field(default=DEFAULT_INTERVAL_MS, gt=0)
    log_level: str = "INFO"
    debug: bool = False

    @property
    def effective_log_level(self) -> str:
        """DEBUG when ``debug`` is set, otherwise ``log_level``."""
        return "DEBUG" if self.debug else self.log_level.upper()
