"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """All configuration loaded from environment / .env file."""

    # ── Application ──────────────────────────────────────────────
    app_name: str = "StreamTracker"
    app_url: str = "http://localhost:3000"
    debug: bool = False
    log_level: str = "info"

    # ── TVMaze (show catalog) ────────────────────────────────────
    tvmaze_url: str = "https://api.tvmaze.com"
    tvmaze_country: str = "US"
    tvmaze_timeout: float = 15.0

    # ── Firebase Realtime Database (account store) ───────────────
    firebase_database_url: Optional[str] = None
    firebase_auth_token: Optional[str] = None   # database secret or ID token

    # ── Local snapshot cache ─────────────────────────────────────
    local_cache_url: str = "sqlite+aiosqlite:///./streamtracker-cache.db"

    # ── Presentation defaults ────────────────────────────────────
    placeholder_poster_url: str = (
        "https://images.unsplash.com/photo-1536440136628-849c177e76a1?w=300&h=450&fit=crop"
    )

    # ── Notifications ────────────────────────────────────────────
    notification_check_interval_minutes: int = 60
    monitored_accounts: list[str] = []

    # ── Server ───────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def has_firebase(self) -> bool:
        return bool(self.firebase_database_url)

    @property
    def has_monitor(self) -> bool:
        return (
            self.has_firebase
            and bool(self.monitored_accounts)
            and self.notification_check_interval_minutes > 0
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
