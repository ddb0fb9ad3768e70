"""Tests for engine configuration."""
from sqlalchemy.pool import StaticPool
from tideway.database import _engine_options


def test_memory_sqlite_shares_one_connection():
    options = _engine_options("sqlite://")
    assert options["poolclass"] is StaticPool
    assert options["connect_args"] == {"check_same_thread": False}


def test_file_sqlite_uses_default_pool():
    assert "poolclass" not in _engine_options("sqlite:///./tideway.db")


def test_postgres_pool_from_settings(monkeypatch):
    from tideway.config import settings
    monkeypatch.setattr(settings, "db_pool_size", 3)

    options = _engine_options("postgresql://u:p@localhost/tideway")

    assert options["pool_size"] == 3
    assert options["pool_pre_ping"] is True
