from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Portal settings.

    Notes:
    - Defaults are local and deterministic (sqlite file + bundled access config).
    - Override any field with a ``PORTAL_`` environment variable.
    """

    model_config = SettingsConfigDict(env_prefix="PORTAL_", extra="ignore")

    db_url: str | None = None
    access_config_path: str | None = None
    log_level: str = "INFO"

    session_cookie_name: str = "portal_session"
    auth_storage_key: str = "portal_auth_state"
    view_storage_key: str = "portal_view_state"
    max_cached_sessions: int = 1024

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "portal.db"
        return f"sqlite:///{db_path}"

    def resolved_access_config_path(self) -> Path:
        if self.access_config_path:
            return Path(self.access_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "access_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
