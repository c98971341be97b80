from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


class Settings(BaseSettings):
    """Runtime configuration loaded from the environment and `.env`."""

    model_config = SettingsConfigDict(
        env_prefix="BI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding the entity CSV/XLSX files")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    log_level: str = Field(default="INFO")
    matcher_cache_size: int = Field(default=256, gt=0)


def get_settings() -> Settings:
    return Settings()
