from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the character-sheet terminal app.

    Values are loaded from environment variables and `.env`.

    Notes:
    - Width/height are only the starting frame size; the transport's resize
      events override them per session.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Frame
    DND_DEFAULT_WIDTH: int = Field(default=80)
    DND_DEFAULT_HEIGHT: int = Field(default=24)

    # Timers (seconds)
    DND_STATUS_CLEAR_SECONDS: float = Field(default=3.0)
    DND_BLINK_INTERVAL: float = Field(default=0.5)

    # Auth
    DND_PASSWORD_MIN_LENGTH: int = Field(default=6)

    # Logging (diagnostic; stored outside the working tree by default)
    DND_LOG_DIR: Path = Field(default=Path("_logs"))
    DND_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    DND_LOG_BACKUP_COUNT: int = Field(default=14)

    # Seed a demo account with a sample character (local play only).
    DND_DEMO_DATA: bool = Field(default=False)


def load_settings() -> Settings:
    s = Settings()
    # Frames narrower than this cannot hold the tab bar.
    s.DND_DEFAULT_WIDTH = max(40, s.DND_DEFAULT_WIDTH)
    s.DND_DEFAULT_HEIGHT = max(10, s.DND_DEFAULT_HEIGHT)
    return s
