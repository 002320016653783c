"""
Application configuration management.
Centralizes all configuration settings for the transcription service.
"""

import os
import shutil
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_base_dir() -> Path:
    """Directory that holds runtime folders (tmp/, public/)."""
    return Path(os.getenv("APP_BASE_DIR", Path(__file__).parent))


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Frozen once constructed: the same instance is handed to the engine,
    splitter, queue and reaper at startup.
    """

    # Application
    app_name: str = "Audio Transcriber"
    debug: bool = False

    # Paths
    base_dir: Path = get_base_dir()
    tmp_dir: Path = base_dir / "tmp"
    public_dir: Path = base_dir / "public"

    ffmpeg_path: str = shutil.which("ffmpeg") or os.getenv("FFMPEG_PATH", "ffmpeg")

    # Transcription (Gemini)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-pro"
    single_shot: bool = True
    fallback_auto_chunk: bool = True
    request_timeout_sec: float = 600
    chunk_duration_sec: int = 300
    chunk_retry_delay_sec: float = 2.0

    # Retention
    ttl_hours: float = 2
    reaper_interval_minutes: float = 10

    # Worker pool
    max_concurrent_jobs: int = 2
    max_queued_jobs: int = 100

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    # File limits
    max_upload_mb: int = 2000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
    )

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)

    @property
    def reaper_interval_seconds(self) -> float:
        return self.reaper_interval_minutes * 60

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def ensure_dirs(app_settings: Settings) -> None:
    """Create the runtime directories the service writes into."""
    app_settings.tmp_dir.mkdir(parents=True, exist_ok=True)
    app_settings.public_dir.mkdir(parents=True, exist_ok=True)


settings = Settings()
