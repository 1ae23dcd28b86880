"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VibeTune application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        database_url: Async SQLAlchemy connection string.
        storage_dir: Root directory of the local object store.
        lyria_access_token: Bearer token for the Vertex AI predict endpoint.
        gemini_api_key: API key for the Gemini video-understanding model.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Music generation (Lyria on Vertex AI) ---
    lyria_project: str = "vibetune-463607"
    lyria_location: str = "us-central1"
    lyria_model: str = "lyria-002"
    lyria_access_token: str = ""  # e.g. output of `gcloud auth print-access-token`
    generation_timeout: float = 300.0  # Music generation can take minutes

    # --- Video understanding (Gemini) ---
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: float = 120.0
    prompt_max_attempts: int = 3
    prompt_backoff_base: float = 2.0  # Seconds; wait = base ** attempt

    # --- Recorder ---
    countdown_seconds: int = 3
    max_recording_seconds: int = 30
    recorder_tick_seconds: float = 1.0
    max_upload_bytes: int = 100 * 1024 * 1024  # 100 MB

    # --- Status polling (client side) ---
    poll_interval: float = 5.0

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    api_key: str = ""  # Empty = no bearer auth on /api/ routes
    cors_origins: list[str] = ["http://localhost:3000"]
    job_shutdown_timeout: float = 30.0

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/vibetune.db"
    storage_dir: str = "data/storage"  # Local object store root
    storage_bucket: str = "songs"
    public_base_url: str = "http://localhost:8000"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide ``Settings``, reading env and .env on first call."""
    return Settings()
