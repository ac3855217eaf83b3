from __future__ import annotations

import os
from urllib.parse import urlparse

import pytest
from sqlalchemy import create_engine, text

DB_TEST = os.getenv("DB_TEST")

pytestmark = pytest.mark.skipif(not DB_TEST, reason="DB_TEST not set (SQLAlchemy DSN to a migrated Postgres test DB)")


def _db_name(dsn: str) -> str:
    u = urlparse(dsn)
    return (u.path or "").lstrip("/") or "<unknown>"


def _all(engine, sql: str) -> list[str]:
    with engine.connect() as c:
        return [r[0] for r in c.execute(text(sql)).all()]


@pytest.mark.e2e_gate
def test_test_db_schema_has_required_tables():
    eng = create_engine(DB_TEST)

    required = {"alembic_version", "tt_tasks"}

    existing = set(_all(eng, "SELECT tablename FROM pg_tables WHERE schemaname='public'"))
    missing = sorted(required - existing)

    assert not missing, (
        f"Missing tables in test DB {_db_name(DB_TEST)}: {missing}. "
        "Run migrations (alembic upgrade head) against it first."
    )


@pytest.mark.e2e_gate
def test_tt_tasks_document_is_jsonb():
    eng = create_engine(DB_TEST)

    types = _all(
        eng,
        "SELECT data_type FROM information_schema.columns "
        "WHERE table_name='tt_tasks' AND column_name='document'",
    )
    assert types == ["jsonb"], types


@pytest.mark.e2e_gate
def test_tt_tasks_location_is_text():
    eng = create_engine(DB_TEST)

    types = _all(
        eng,
        "SELECT data_type FROM information_schema.columns "
        "WHERE table_name='tt_tasks' AND column_name='location'",
    )
    assert types == ["text"], types
