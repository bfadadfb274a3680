"""Configuration loading from environment variables with validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Anchor all paths to the project root (two levels up from the package)
_PROJECT_DIR = Path(__file__).resolve().parent.parent.parent

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PUNDIT_",
        case_sensitive=False,
    )

    # Anthropic (loaded separately, no prefix)
    anthropic_api_key: str = ""

    # Model settings
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    temperature: float = 0.7

    # Live verification through Claude's web search server tool
    web_search_enabled: bool = True
    web_search_max_uses: int = 5

    # Storage paths (absolute, anchored to the project root); the database
    # and session file live in data_dir unless set explicitly
    data_dir: Path = _PROJECT_DIR / "data"
    db_path: Path | None = None
    session_path: Path | None = None

    # Article lifecycle
    inbox_cap: int = 100
    autosave_delay_seconds: float = 3.0

    # Discovery
    discovery_mode: str = "feeds"  # feeds | search
    max_articles_per_feed: int = 10
    max_discovered_articles: int = 25
    http_timeout: float = 30.0

    # Logging
    log_level: str = "WARNING"

    @model_validator(mode="after")
    def _fill_storage_paths(self) -> Settings:
        if self.db_path is None:
            self.db_path = self.data_dir / "pundit.db"
        if self.session_path is None:
            self.session_path = self.data_dir / "session.json"
        return self


def get_settings() -> Settings:
    """Load settings from environment and .env file."""
    # Load .env from the project root regardless of cwd
    load_dotenv(_PROJECT_DIR / ".env")
    api_key = os.getenv("ANTHROPIC_API_KEY", "")
    return Settings(anthropic_api_key=api_key)


def configure_logging(level: str = "WARNING") -> None:
    """Install a single stderr handler on the root logger."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper())
