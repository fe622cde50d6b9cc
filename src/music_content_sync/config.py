"""Sync configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncConfig(BaseSettings):
    """All sync configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    content_dir: Path = Path("src/content/music")
    log_dir: Path = Path(".logs")
    state_file: Path = Path(".cache/build-state.json")

    # -- Probing --
    ffprobe_timeout: float = 5.0

    # -- Rendering --
    media_url_prefix: str = "/music-files"

    # -- Behavior --
    force: bool = False
    verbose: bool = False
    log_level: str = "INFO"

    def setup_logging(self) -> None:
        """Configure loguru for the sync tools."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<12} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "sync.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
