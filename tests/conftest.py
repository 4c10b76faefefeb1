"""Shared fixtures.

Environment variables are set before any ``whosin`` module is imported so the
module-level engine points at SQLite instead of PostgreSQL.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TELEGRAM_WEBHOOK_SECRET", "")

import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from whosin.db import make_engine, make_session_factory  # noqa: E402
from whosin.models import Base  # noqa: E402
from whosin.repository import InMemoryRepository, SqlRepository  # noqa: E402


@pytest.fixture
def engine():
    engine = make_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file database, so separate connections see each other's commits."""
    engine = make_engine(
        f"sqlite:///{tmp_path / 'whosin.db'}",
        connect_args={"timeout": 30, "check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_repository(session_factory):
    return SqlRepository(session_factory)


@pytest.fixture
def memory_repository():
    return InMemoryRepository()


@pytest.fixture(params=["sql", "memory"])
def repository(request, session_factory):
    if request.param == "sql":
        return SqlRepository(session_factory)
    return InMemoryRepository()

