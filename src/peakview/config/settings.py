"""Application settings using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PEAKVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # General
    log_level: str = "INFO"
    json_logs: bool = False

    # Storage
    data_dir: str = "~/.peakview"
    folder_cache_file: str = "folder_cache.json"
    remote_cache_file: str = "remote_repos.json"
    folder_settings_file: str = "folder_settings.json"

    # Watched roots and credential (normally supplied by the host application)
    watched_roots: list[str] = Field(default_factory=list)
    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("peakview_token", "github_token"),
    )

    # --- Hosted repository listing ---
    api_base_url: str = "https://api.github.com"
    page_size: int = Field(default=100, ge=1, le=100)
    request_timeout: float = 30.0
    refresh_interval_seconds: float = 5 * 60

    # --- Detection ---
    scan_workers: int = Field(default=8, ge=1)
    sample_file_limit: int = Field(default=3, ge=1)
    download_poll_attempts: int = Field(default=30, ge=1)
    download_poll_interval: float = 0.1
    slow_detection_threshold: float = 0.1

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.data_dir = str(Path(self.data_dir).expanduser())
        self.watched_roots = [str(Path(root).expanduser()) for root in self.watched_roots]

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def folder_cache_path(self) -> Path:
        return self.data_path / self.folder_cache_file

    @property
    def remote_cache_path(self) -> Path:
        return self.data_path / self.remote_cache_file

    @property
    def folder_settings_path(self) -> Path:
        return self.data_path / self.folder_settings_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
