"""Application configuration management."""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables, .env and Docker secrets."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        secrets_dir="/run/secrets",
        case_sensitive=False,
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.debug and self.log_level.upper() not in ("TRACE", "VERBOSE"):
            self.log_level = "DEBUG"

    # Database
    database_url: str = "sqlite:///./timehub.db"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Application
    debug: bool = False
    log_level: str = "INFO"
    api_v1_str: str = "/api/v1"

    # Providers (tokens may come from /run/secrets/toggl_api_token etc.)
    toggl_api_token: Optional[str] = None
    toggl_api_url: str = "https://api.track.toggl.com/api/v9"
    tempo_api_token: Optional[str] = None
    tempo_api_url: str = "https://api.tempo.io/4"
    jira_base_url: Optional[str] = None
    http_timeout_seconds: float = 30.0

    # Raw response cache
    cache_dir: str = "."
    cache_max_age_seconds: int = 600

    # Summaries
    summary_timezone: str = "UTC"

    # Scheduled refresh, 0 disables the job
    sync_schedule_minutes: int = 0

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir)


# Global settings instance
settings = Settings()
