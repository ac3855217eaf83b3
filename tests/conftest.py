# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker as _sessionmaker
from sqlalchemy.pool import StaticPool

# IMPORTANT: register ORM tables in metadata before create_all
import ttboard.models.tt_task  # noqa: F401
from ttboard.core.db import get_db
from ttboard.main import app
from ttboard.models.base import Base
from ttboard.repositories.tt_task_repository import TTTaskRepository
from ttboard.services.assignment_service import AssignmentService

FIXED_NOW = "2024-01-05T09:00:00+00:00"


@pytest.fixture()
def engine():
    """
    Fresh in-memory SQLite database per test.
    StaticPool: every connection (also the TestClient worker thread) sees the same memory DB.
    """
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return _sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def repo(db):
    return TTTaskRepository(db)


@pytest.fixture()
def id_factory():
    counter = iter(range(1, 10_000))
    return lambda: f"asg-{next(counter)}"


@pytest.fixture()
def service(repo, id_factory):
    return AssignmentService(repo, id_factory=id_factory, clock=lambda: FIXED_NOW, max_days=365)


@pytest.fixture()
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-Role": "admin", "X-Actor-User-Id": "alice"}
