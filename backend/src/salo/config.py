"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env relative to the project root
_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Backend API ---
    api_base_url: str = "http://localhost:5000/api"
    socket_url: str = "http://localhost:4000"
    request_timeout_s: float = 30.0
    http_retry_attempts: int = 1  # 1 = single attempt, no retry

    # --- Identity provider ---
    firebase_api_key: str | None = None
    firebase_auth_url: str = "https://identitytoolkit.googleapis.com/v1"

    # --- Local session storage ---
    session_file: str = "~/.salo/session.json"

    # --- Views / analytics ---
    poll_interval_s: float = 30.0
    trend_days: int = 30
    report_dir: str = "reports"

    # --- App ---
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def session_path(self) -> Path:
        return Path(self.session_file).expanduser()


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
