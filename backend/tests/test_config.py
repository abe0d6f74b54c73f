from streamtracker.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("FIREBASE_DATABASE_URL", raising=False)
    monkeypatch.delenv("MONITORED_ACCOUNTS", raising=False)
    settings = Settings(_env_file=None)
    assert settings.tvmaze_url == "https://api.tvmaze.com"
    assert settings.local_cache_url.startswith("sqlite+aiosqlite://")
    assert not settings.has_firebase
    assert not settings.has_monitor


def test_monitor_needs_store_and_accounts(monkeypatch):
    monkeypatch.setenv("FIREBASE_DATABASE_URL", "https://demo.firebaseio.test")
    monkeypatch.setenv("MONITORED_ACCOUNTS", '["u1", "u2"]')
    settings = Settings(_env_file=None)
    assert settings.has_firebase
    assert settings.monitored_accounts == ["u1", "u2"]
    assert settings.has_monitor

    settings = Settings(_env_file=None, notification_check_interval_minutes=0)
    assert not settings.has_monitor
