# tests/test_db.py
# =======================
# 🗄️ Política de URL de base de datos
# =======================

import pytest
from sqlalchemy.pool import StaticPool

from app.db import LOCAL_DB_FILENAME, make_engine, resolve_database_url


def test_explicit_url_wins():
    assert resolve_database_url("postgresql://u:p@host/db", "postgres") == "postgresql://u:p@host/db"


@pytest.mark.parametrize("raw", ["", "   ", "${{ Postgres.DATABASE_URL }}"])
def test_missing_url_aborts_when_postgres_is_forced(raw):
    with pytest.raises(RuntimeError, match="FORCE_DB=postgres"):
        resolve_database_url(raw, "postgres")


def test_missing_url_falls_back_to_local_sqlite():
    url = resolve_database_url("", "SQLite")
    assert url.startswith("sqlite:///")
    assert url.endswith(LOCAL_DB_FILENAME)


def test_in_memory_sqlite_shares_one_connection():
    eng = make_engine("sqlite://")
    try:
        assert isinstance(eng.pool, StaticPool)
    finally:
        eng.dispose()
