"""Tests for the cache store implementations."""

from datetime import datetime, timezone

import pytest

from cache.db import DatabaseError
from cache.store import DatabaseCacheStore
from ingest.core_files import make_stored_file
from ingest.models import (
    AnalysisRecord,
    CommitRecord,
    ContributorCount,
    Metrics,
    RepositoryIdentifier,
)

REPO = RepositoryIdentifier("octocat", "hello-world")


def _record(core_files=(), narrative=None, total_commits=1):
    return AnalysisRecord(
        repository_id=REPO.key,
        source_url="https://github.com/octocat/hello-world",
        total_commits=total_commits,
        contributor_counts=[ContributorCount("Ada", 1)],
        commits=[
            CommitRecord(
                sha="abc123",
                author="Ada",
                authored_date=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
                message="feat: initial commit",
                sentiment="positive",
            )
        ],
        file_paths=["package.json", "src/index.ts"],
        readme="# Hello",
        package_manifest={"name": "hello", "dependencies": {"express": "^4"}},
        core_files=list(core_files),
        metrics=Metrics(churn_rate=0.0, refactor_count=0, bug_fix_count=0),
        narrative=narrative,
    )


class TestAnalysisRecords:
    """Analysis record storage, for every store implementation."""

    def test_miss_returns_none(self, store):
        assert store.get_analysis(REPO) is None

    def test_round_trip(self, store):
        core = make_stored_file(REPO.key, "package.json", '{"name": "hello"}')
        store.put_file(core)
        record = _record(core_files=[core])

        store.put_analysis(record)
        loaded = store.get_analysis(REPO)

        assert loaded == record
        assert loaded.core_files == [core]
        assert loaded.commits[0].authored_date == record.commits[0].authored_date

    def test_put_replaces_existing(self, store):
        store.put_analysis(_record(total_commits=1))
        store.put_analysis(_record(total_commits=7))

        assert store.get_analysis(REPO).total_commits == 7

    def test_returned_record_is_a_copy(self, store):
        store.put_analysis(_record())

        loaded = store.get_analysis(REPO)
        loaded.file_paths.append("mutated.py")

        assert "mutated.py" not in store.get_analysis(REPO).file_paths


class TestNarrative:
    """Narrative attachment."""

    def test_attach_to_existing_record(self, store):
        store.put_analysis(_record())
        narrative = {"title": "The Rise of Hello", "acts": [{"name": "Genesis"}]}

        assert store.attach_narrative(REPO, narrative) is True
        loaded = store.get_analysis(REPO)

        assert loaded.narrative == narrative
        # Narrative does not take part in record equality
        assert loaded == _record()

    def test_attach_without_record(self, store):
        assert store.attach_narrative(REPO, {"title": "x"}) is False
        assert store.get_analysis(REPO) is None

    def test_replacing_record_drops_narrative(self, store):
        store.put_analysis(_record())
        store.attach_narrative(REPO, "story")

        store.put_analysis(_record())

        assert store.get_analysis(REPO).narrative is None


class TestStoredFiles:
    """Stored file table."""

    def test_get_missing_file(self, store):
        assert store.get_file(REPO, "nope.py") is None

    def test_put_and_get_full_content(self, store):
        content = "x = 1\n" * 5000
        store.put_file(make_stored_file(REPO.key, "big.py", content))

        stored = store.get_file(REPO, "big.py")

        assert stored.content == content
        assert stored.language == "Python"
        assert stored.size == len(content.encode("utf-8"))

    def test_last_write_wins(self, store):
        store.put_file(make_stored_file(REPO.key, "a.py", "old"))
        store.put_file(make_stored_file(REPO.key, "a.py", "new"))

        assert store.get_file(REPO, "a.py").content == "new"
        assert len(store.list_files_by_repo(REPO)) == 1

    def test_list_files_by_repo(self, store):
        other = RepositoryIdentifier("someone", "else")
        store.put_file(make_stored_file(REPO.key, "b.py", "b"))
        store.put_file(make_stored_file(REPO.key, "a.py", "a"))
        store.put_file(make_stored_file(other.key, "c.py", "c"))

        paths = [f.path for f in store.list_files_by_repo(REPO)]

        assert paths == ["a.py", "b.py"]


class TestDatabaseCacheStore:
    """Behaviour specific to the database-backed store."""

    def test_from_env_creates_schema(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_TYPE", "sqlite")
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "env" / "cache.db"))

        store = DatabaseCacheStore.from_env()
        try:
            assert {"analysis", "stored_files", "schema_version"} <= set(
                store.adapter.get_tables()
            )
        finally:
            store.close()

    def test_initialize_skips_schema_when_tables_exist(self, tmp_path, monkeypatch):
        from cache.db import DatabaseConfig, create_database

        config = DatabaseConfig(db_type="sqlite", db_path=tmp_path / "cache.db")
        first = DatabaseCacheStore(create_database(config))
        first.adapter.connect()
        first.initialize()
        first.close()

        second = DatabaseCacheStore(create_database(config))
        second.adapter.connect()
        calls = []
        monkeypatch.setattr(second.adapter, "create_schema", lambda: calls.append(True))
        try:
            second.initialize()
            assert calls == []
        finally:
            second.close()

    def test_record_survives_reopen(self, tmp_path):
        from cache.db import DatabaseConfig, create_database

        config = DatabaseConfig(db_type="sqlite", db_path=tmp_path / "cache.db")
        first = DatabaseCacheStore(create_database(config))
        first.adapter.connect()
        first.initialize()
        first.put_analysis(_record())
        first.close()

        second = DatabaseCacheStore(create_database(config))
        second.adapter.connect()
        second.initialize()
        try:
            assert second.get_analysis(REPO) == _record()
        finally:
            second.close()

    def test_missing_core_file_is_skipped(self, sqlite_store):
        core = make_stored_file(REPO.key, "package.json", "{}")
        sqlite_store.put_analysis(_record(core_files=[core]))

        assert sqlite_store.get_analysis(REPO).core_files == []

    def test_write_failure_rolls_back(self, sqlite_store):
        sqlite_store.adapter.execute("DROP TABLE stored_files")
        sqlite_store.adapter.commit()

        with pytest.raises(DatabaseError):
            sqlite_store.put_file(make_stored_file(REPO.key, "a.py", "a"))
