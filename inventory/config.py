"""Application configuration using Pydantic settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

DATA_SOURCES = ("remote", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Backend API (remote data source)
    api_base_url: str = "http://localhost:5000/api"
    request_timeout_seconds: int = 10

    # Data source: "remote" talks to the API, "local" uses JSON snapshots
    data_source: str = "remote"
    data_dir: str = ".inventory-data"

    # Session persistence
    session_file: str = "~/.inventory/session.json"

    # Listing
    page_size: int = 10

    # Access control
    allow_self_service_admin: bool = False

    # Local token issuing (local data source only)
    jwt_secret: str = "change-me-in-production"
    local_token_expire_minutes: int = 60

    # Logging
    log_level: str = "INFO"

    @field_validator("data_source")
    @classmethod
    def data_source_known(cls, v: str) -> str:
        """Ensure the data source is one of the supported backends."""
        v = v.strip().lower()
        if v not in DATA_SOURCES:
            raise ValueError(f"data_source must be one of {', '.join(DATA_SOURCES)}")
        return v

    @field_validator("page_size")
    @classmethod
    def page_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page_size must be at least 1")
        return v

    @property
    def session_path(self) -> Path:
        """Resolved location of the persisted session document."""
        return Path(self.session_file).expanduser()

    @property
    def data_path(self) -> Path:
        """Resolved directory holding local snapshot collections."""
        return Path(self.data_dir).expanduser()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
