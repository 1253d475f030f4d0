"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="EBOOKS_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "Ebooks Library"
    secret_key: str = "change-me"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./ebooks.db"
    db_pool_size: int = 10
    db_max_overflow: int = 0
    db_pool_recycle_seconds: int = 180  # 3 minutes
    db_pool_timeout_seconds: float = 30.0
    db_lock_timeout_seconds: float = 5.0
    loan_transaction_timeout_seconds: float = 10.0

    # Sessions
    session_lifetime_minutes: int = 60 * 24
    session_cookie_name: str = "ebooks_session"
    session_cookie_secure: bool = False
    session_purge_interval_seconds: int = 600

    # Only set to reproduce the old fixed-length password check
    legacy_password_length: int | None = None

    # Uploaded covers and PDFs
    media_dir: Path = Path("./media")

    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    seed_on_startup: bool = False

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
