from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BLOCK_SIZE = 64 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from ``HASHSAFE_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="HASHSAFE_")

    block_size: int = DEFAULT_BLOCK_SIZE
    max_workers: int = 4
    log_dir: Path | None = None
    poll_interval_ms: int = 50

    @field_validator("block_size", "max_workers", "poll_interval_ms")
    @classmethod
    def ensure_positive(cls, value: int) -> int:
        if value <= 0:
            msg = "value must be positive"
            raise ValueError(msg)
        return value

    @field_validator("log_dir", mode="after")
    @classmethod
    def ensure_directory(cls, value: Path | None) -> Path | None:
        if value is not None:
            value.mkdir(parents=True, exist_ok=True)
        return value


settings = Settings()


__all__ = ["DEFAULT_BLOCK_SIZE", "Settings", "settings"]
