"""Runtime settings read from the environment."""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".flashdeck" / "flashdeck.db")


class Settings(BaseSettings):
    """Settings loaded from FLASHDECK_* environment variables or a .env file."""

    model_config = SettingsConfigDict(env_prefix="FLASHDECK_", env_file=".env", extra="ignore")

    api_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the deck and progress API. Unset means local SQLite storage.",
    )
    db_path: str = Field(default=DEFAULT_DB_PATH, description="SQLite database file")
    user_id: Optional[str] = Field(default=None, description="User id used for saved progress")
    save_debounce_ms: int = Field(
        default=700, ge=0,
        description="Quiet period before preference changes are saved",
    )
    request_timeout_s: float = Field(default=10.0, gt=0, description="HTTP timeout per request")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")


@lru_cache
def get_settings() -> Settings:
    return Settings()
