from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings


def make_engine(database_url: str, timeout_ms: int = 5000, **kwargs) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=timeout_ms / 1000,
        **kwargs,
    )


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Returned records outlive their transaction as read-only snapshots.
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


settings = get_settings()
engine = make_engine(settings.database_url, settings.database_timeout_ms)
SessionLocal = make_session_factory(engine)
