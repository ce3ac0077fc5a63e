"""Tests for migration bookkeeping and the shared connection pool."""

import io

import pytest
from rich.console import Console

from youcra.db import connection as db_connection
from youcra.db import migrate


class FakeCursor:
    def __init__(self, applied, fail_on=None):
        self.applied = applied
        self.fail_on = fail_on
        self.statements = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, sql, params=None):
        if self.fail_on is not None and self.fail_on in sql:
            raise RuntimeError("syntax error")
        self.statements.append((sql, params))

    def fetchall(self):
        return [(name,) for name in self.applied]


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


@pytest.fixture
def migrations_dir(tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "001_watch_rows.sql").write_text("CREATE TABLE watch_rows ();", encoding="utf-8")
    (directory / "002_aggregates.sql").write_text("CREATE TABLE aggregates ();", encoding="utf-8")
    return directory


def _patch_connection(monkeypatch, conn):
    monkeypatch.setattr(migrate, "configured_dsn", lambda: "postgresql://localhost/youcra")
    monkeypatch.setattr(migrate, "connection_from_dsn", lambda dsn: conn)


def test_applied_migrations_are_skipped(monkeypatch, migrations_dir):
    cursor = FakeCursor(applied=["001_watch_rows.sql"])
    conn = FakeConnection(cursor)
    _patch_connection(monkeypatch, conn)
    output = io.StringIO()

    results = migrate.run_migrations(Console(file=output, width=120), directory=migrations_dir)

    assert results == [("001_watch_rows.sql", migrate.SKIPPED), ("002_aggregates.sql", migrate.APPLIED)]
    executed = [sql for sql, _ in cursor.statements]
    assert "CREATE TABLE aggregates ();" in executed
    assert "CREATE TABLE watch_rows ();" not in executed
    recorded = [params for sql, params in cursor.statements if sql.startswith("INSERT INTO schema_migrations")]
    assert recorded == [{"name": "002_aggregates.sql"}]
    assert conn.committed and conn.closed
    assert "skipped" in output.getvalue()


def test_failed_migration_rolls_back(monkeypatch, migrations_dir):
    conn = FakeConnection(FakeCursor(applied=[], fail_on="aggregates"))
    _patch_connection(monkeypatch, conn)

    with pytest.raises(RuntimeError):
        migrate.run_migrations(Console(quiet=True), directory=migrations_dir)

    assert conn.rolled_back is True
    assert conn.committed is False
    assert conn.closed is True


def test_empty_directory_needs_no_connection(monkeypatch, tmp_path):
    def _unexpected(dsn):
        raise AssertionError("no connection expected")

    monkeypatch.setattr(migrate, "connection_from_dsn", _unexpected)

    assert migrate.run_migrations(Console(quiet=True), directory=tmp_path) == []


def test_close_pool_resets_shared_pool(monkeypatch):
    class FakePool:
        closes = 0

        def close(self):
            FakePool.closes += 1

    monkeypatch.setattr(db_connection, "_pool", FakePool())

    db_connection.close_pool()
    db_connection.close_pool()

    assert FakePool.closes == 1
    assert db_connection._pool is None


def test_pool_size_comes_from_settings(monkeypatch):
    created = {}

    class RecordingPool:
        def __init__(self, dsn, *, max_connections):
            created.update(dsn=dsn, max_connections=max_connections)

    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/youcra")
    monkeypatch.setenv("DATABASE_POOL_MAX_CONNECTIONS", "3")
    monkeypatch.setattr(db_connection, "_pool", None)
    monkeypatch.setattr(db_connection, "DatabasePool", RecordingPool)

    db_connection._ensure_pool()

    assert created["max_connections"] == 3
    assert created["dsn"].startswith("postgresql://")
