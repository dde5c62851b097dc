import pytest
from pydantic import ValidationError

from agencydesk.config import Settings
from agencydesk.database import engine_options


def test_sqlite_engine_shares_connections_across_threads():
    options = engine_options("sqlite:///./agencydesk.db")
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in options


def test_server_engine_gets_sized_pool():
    options = engine_options("postgresql://agency:secret@db/agencydesk")
    assert "connect_args" not in options
    assert options["pool_size"] == 10
    assert options["max_overflow"] == 20


def test_log_level_normalised():
    settings = Settings(DATABASE_URL="sqlite://", SECRET_KEY="k", LOG_LEVEL=" debug ")
    assert settings.LOG_LEVEL == "DEBUG"

    with pytest.raises(ValidationError):
        Settings(DATABASE_URL="sqlite://", SECRET_KEY="k", LOG_LEVEL="chatty")


def test_cors_origins_list():
    settings = Settings(DATABASE_URL="sqlite://", SECRET_KEY="k", CORS_ORIGINS="https://a.test, ,https://b.test")
    assert settings.cors_origins_list == ["https://a.test", "https://b.test"]
