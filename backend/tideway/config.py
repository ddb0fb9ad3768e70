"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str = "postgresql://tideway:tideway@db:5432/tideway"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Redis (Celery broker/backend)
    redis_url: str = "redis://redis:6379/0"

    # Authentication (tokens are issued elsewhere, we only verify them)
    jwt_secret: str = "change-me-in-production-use-random-string"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24

    # Storage paths
    storage_chunks: str = "/data/chunks"          # In-flight chunk parts: <track_id>/<index>.part
    storage_tracks: str = "/data/tracks"          # Finalized assets
    storage_thumbnails: str = "/data/thumbnails"  # Track artwork

    # Upload limits
    max_total_chunks: int = 10000
    max_chunk_size: int = 10 * 1024 * 1024  # 10MB

    # Finalization
    finalize_in_background: bool = False  # Hand finalization to Celery instead of the request
    finalize_stale_minutes: int = 30      # Sessions stuck in "finalizing" longer than this are recovered

    # Library
    random_tracks_limit: int = 20

    # HTTP
    cors_origins: str = "*"

    # Logging
    log_level: str = "info"
    log_path: str = ""
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    class Config:
        env_file = (".env", "../.env")  # Check both backend/ and parent dir
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
