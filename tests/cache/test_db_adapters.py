"""Tests for cache database adapters."""

import os
from pathlib import Path

import pytest

from cache.db import DatabaseConfig, DatabaseType, IntegrityError, create_database, get_adapter
from cache.db.sqlite_adapter import SQLiteAdapter

# Skip PostgreSQL integration tests unless explicitly enabled
# (These tests require a running PostgreSQL instance)
POSTGRES_INTEGRATION_ENABLED = os.getenv("RUN_POSTGRES_TESTS") == "1"

INSERT_FILE = (
    "INSERT INTO stored_files (repository_id, path, content, language, size, content_hash) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)


def _file_row(path, content="x"):
    return ("octocat/hello-world", path, content, None, len(content), "hash")


class TestSQLiteAdapter:
    """Tests for SQLite adapter."""

    @pytest.fixture
    def adapter(self, tmp_path):
        adapter = SQLiteAdapter(tmp_path / "cache.db")
        adapter.connect()
        adapter.create_schema()
        yield adapter
        adapter.close()

    def test_connect_and_close(self, tmp_path):
        adapter = SQLiteAdapter(tmp_path / "nested" / "cache.db")

        adapter.connect()
        assert adapter._conn is not None
        assert (tmp_path / "nested").is_dir()

        adapter.close()
        assert adapter._conn is None

    def test_create_schema(self, adapter):
        """Test that both cache tables are created."""
        assert sorted(adapter.get_tables()) == ["analysis", "stored_files"]

    def test_execute_and_fetch(self, adapter):
        adapter.execute(INSERT_FILE, _file_row("b.py"))
        adapter.execute(INSERT_FILE, _file_row("a.py"))
        adapter.commit()

        one = adapter.fetchone("SELECT path FROM stored_files WHERE path = ?", ("a.py",))
        rows = adapter.fetchall("SELECT path FROM stored_files ORDER BY path")

        assert one == {"path": "a.py"}
        assert [row["path"] for row in rows] == ["a.py", "b.py"]

    def test_fetchone_missing_returns_none(self, adapter):
        assert adapter.fetchone("SELECT path FROM stored_files WHERE path = ?", ("nope",)) is None

    def test_commit_and_rollback(self, adapter):
        adapter.execute(INSERT_FILE, _file_row("kept.py"))
        adapter.commit()
        adapter.execute(INSERT_FILE, _file_row("discarded.py"))
        adapter.rollback()

        paths = [row["path"] for row in adapter.fetchall("SELECT path FROM stored_files")]
        assert paths == ["kept.py"]

    def test_duplicate_key_raises_integrity_error(self, adapter):
        """A plain INSERT on an existing (repository, path) is rejected."""
        adapter.execute(INSERT_FILE, _file_row("dup.py"))
        adapter.commit()

        with pytest.raises(IntegrityError):
            adapter.execute(INSERT_FILE, _file_row("dup.py", content="y"))

    def test_context_manager_commits(self, tmp_path):
        adapter = SQLiteAdapter(tmp_path / "cache.db")

        with adapter:
            adapter.create_schema()
            adapter.execute(INSERT_FILE, _file_row("ctx.py"))

        adapter.connect()
        assert adapter.fetchone("SELECT path FROM stored_files") == {"path": "ctx.py"}
        adapter.close()

    def test_in_memory_database(self):
        adapter = SQLiteAdapter(":memory:")
        assert adapter.in_memory

        adapter.connect()
        adapter.create_schema()
        assert "analysis" in adapter.get_tables()
        adapter.close()


class TestDatabaseFactory:
    """Tests for database factory."""

    def test_create_sqlite_from_config(self, tmp_path):
        db_path = tmp_path / "cache.db"
        adapter = create_database(DatabaseConfig(db_type="sqlite", db_path=db_path))

        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.db_path == db_path

    def test_config_validates_sqlite_requirements(self):
        with pytest.raises(ValueError, match="db_path is required"):
            DatabaseConfig(db_type="sqlite")

    def test_config_validates_postgresql_requirements(self):
        with pytest.raises(ValueError, match="host, database, and user are required"):
            DatabaseConfig(db_type="postgresql", host="localhost")

    def test_config_parses_type_case_insensitively(self, tmp_path):
        config = DatabaseConfig(db_type=" SQLite ", db_path=tmp_path / "cache.db")
        assert config.db_type == DatabaseType.SQLITE

    def test_config_rejects_invalid_type(self):
        with pytest.raises(ValueError, match="Unsupported database type"):
            DatabaseConfig(db_type="mongodb", db_path="cache.db")

    def test_config_keeps_memory_path(self):
        config = DatabaseConfig(db_type="sqlite", db_path=":memory:")
        assert config.db_path == ":memory:"

    def test_config_converts_string_path(self):
        config = DatabaseConfig(db_type="sqlite", db_path="cache.db")
        assert isinstance(config.db_path, Path)

    def test_get_adapter_sqlite(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_TYPE", "sqlite")
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "env.db"))

        adapter = get_adapter()
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.db_path == tmp_path / "env.db"

    def test_get_adapter_postgresql(self, monkeypatch):
        pytest.importorskip("psycopg")
        pytest.importorskip("psycopg_pool")
        from cache.db.postgres_adapter import PostgreSQLAdapter

        monkeypatch.setenv("DATABASE_TYPE", "postgresql")
        monkeypatch.setenv("POSTGRES_HOST", "db.internal")
        monkeypatch.setenv("POSTGRES_DB", "cache_test")
        monkeypatch.setenv("POSTGRES_USER", "cache_user")

        adapter = get_adapter()
        assert isinstance(adapter, PostgreSQLAdapter)
        assert adapter.host == "db.internal"
        assert adapter.database == "cache_test"


@pytest.mark.skipif(
    not POSTGRES_INTEGRATION_ENABLED, reason="PostgreSQL integration tests not enabled"
)
class TestPostgreSQLAdapter:
    """Integration tests for the PostgreSQL adapter.

    Require a running PostgreSQL instance; set RUN_POSTGRES_TESTS=1 to run.
    """

    @pytest.fixture
    def pg_adapter(self):
        from cache.db.postgres_adapter import PostgreSQLAdapter

        adapter = PostgreSQLAdapter(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "git_cinematic"),
            user=os.getenv("POSTGRES_USER", "git_cinematic"),
            password=os.getenv("POSTGRES_PASSWORD", ""),
        )
        adapter.connect()
        adapter.create_schema()

        yield adapter

        for table in adapter.get_tables():
            adapter.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
        adapter.commit()
        adapter.close()

    def test_create_schema(self, pg_adapter):
        tables = pg_adapter.get_tables()
        assert "analysis" in tables
        assert "stored_files" in tables

    def test_placeholder_translation(self, pg_adapter):
        """Queries written with '?' run unchanged on PostgreSQL."""
        pg_adapter.execute(INSERT_FILE, _file_row("pg.py"))
        pg_adapter.commit()

        row = pg_adapter.fetchone("SELECT path FROM stored_files WHERE path = ?", ("pg.py",))
        assert row == {"path": "pg.py"}

    def test_duplicate_key_raises_integrity_error(self, pg_adapter):
        pg_adapter.execute(INSERT_FILE, _file_row("dup.py"))
        pg_adapter.commit()

        with pytest.raises(IntegrityError):
            pg_adapter.execute(INSERT_FILE, _file_row("dup.py"))
        pg_adapter.rollback()
