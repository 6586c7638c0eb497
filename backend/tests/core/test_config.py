"""Settings — tests for environment-driven configuration."""

from betpool.config import Settings


def test_postgres_url_gets_async_driver():
    settings = Settings(database_url="postgresql://u:p@host:5432/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host:5432/db"


def test_other_urls_untouched():
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    assert settings.database_url == "sqlite+aiosqlite:///:memory:"


def test_betting_defaults(monkeypatch):
    monkeypatch.delenv("RESERVATION_TAG", raising=False)
    monkeypatch.delenv("LEDGER_ENABLED", raising=False)
    settings = Settings(_env_file=None)
    assert settings.reservation_tag == "bet"
    assert settings.ledger_enabled is True
    assert settings.restore_on_startup is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LEDGER_ENABLED", "false")
    monkeypatch.setenv("RESERVATION_TAG", "wager")
    settings = Settings(_env_file=None)
    assert settings.ledger_enabled is False
    assert settings.reservation_tag == "wager"
