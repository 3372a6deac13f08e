from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Safe defaults; override via BULLETIN_* environment variables or .env
    template_path: Path = APP_DIR / "templates" / "Bulletin_template.pdf"
    template_version: str = "2024.1"
    host: str = "0.0.0.0"
    port: int = 3000
    download_name: str = "bulletin-rempli-ia.pdf"
    century_pivot: Optional[int] = None
    name_strategy: str = "last-token"
    max_body_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="BULLETIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
