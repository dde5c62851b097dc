from collections.abc import Iterator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session

from agencydesk.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """
    Keyword arguments for ``create_engine``.

    SQLite connections are shared across FastAPI's worker threads and use
    SQLite's own pool; other backends get a sized queue pool.
    """
    options: dict[str, Any] = {"pool_pre_ping": True, "echo": settings.DEBUG}
    if make_url(database_url).get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return options


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **engine_options(database_url))


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency for database sessions.

    One session, and the access resolver built on it, serves one request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
