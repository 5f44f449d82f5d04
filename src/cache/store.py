"""Repository cache store.

Holds one analysis record per repository and a table of stored files keyed
by (repository, path). Components receive a store by construction so tests
can swap in ``MemoryCacheStore``.
"""

import copy
import json
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any

from common.logger import get_logger
from ingest.models import (
    AnalysisRecord,
    RepositoryIdentifier,
    StoredFile,
    analysis_from_document,
    analysis_to_document,
)

from .db import DatabaseAdapter, DatabaseError, get_adapter

logger = get_logger(__name__)

CACHE_TABLES = frozenset({"analysis", "stored_files"})


class CacheStore(ABC):
    """Interface of the repository cache."""

    @abstractmethod
    def get_analysis(self, repo_id: RepositoryIdentifier) -> AnalysisRecord | None:
        """Return the analysis record for a repository, or None on a miss."""
        pass

    @abstractmethod
    def put_analysis(self, record: AnalysisRecord) -> None:
        """Insert or replace the analysis record for ``record.repository_id``."""
        pass

    @abstractmethod
    def attach_narrative(self, repo_id: RepositoryIdentifier, narrative: Any) -> bool:
        """Attach an opaque narrative blob to an existing record.

        Returns:
            True if a record was updated, False if none exists
        """
        pass

    @abstractmethod
    def get_file(self, repo_id: RepositoryIdentifier, path: str) -> StoredFile | None:
        """Return the stored file for (repository, path), or None."""
        pass

    @abstractmethod
    def put_file(self, stored_file: StoredFile) -> None:
        """Insert or replace a stored file (last write wins)."""
        pass

    @abstractmethod
    def list_files_by_repo(self, repo_id: RepositoryIdentifier) -> list[StoredFile]:
        """Return all stored files of a repository ordered by path."""
        pass


class DatabaseCacheStore(CacheStore):
    """Cache store backed by a SQLite or PostgreSQL database.

    The analysis record is kept as a JSON document; core file contents are
    not duplicated into it but resolved from ``stored_files`` on read.
    """

    def __init__(self, adapter: DatabaseAdapter):
        """Initialize the store.

        Args:
            adapter: Connected database adapter; call ``initialize`` before use
                on a fresh database
        """
        self.adapter = adapter
        self._lock = threading.RLock()

    @classmethod
    def from_env(cls) -> "DatabaseCacheStore":
        """Connect to the database configured in the environment and prepare it."""
        adapter = get_adapter()
        adapter.connect()
        store = cls(adapter)
        store.initialize()
        return store

    def initialize(self) -> None:
        """Create the schema on a fresh database and apply pending migrations."""
        with self._lock:
            missing = CACHE_TABLES - set(self.adapter.get_tables())
            if missing:
                logger.info(f"Creating cache tables: {', '.join(sorted(missing))}")
                self.adapter.create_schema()
            applied = self.adapter.run_migrations()
            if applied:
                logger.info(f"Applied {applied} cache migration(s)")

    def close(self) -> None:
        with self._lock:
            self.adapter.close()

    def get_analysis(self, repo_id: RepositoryIdentifier) -> AnalysisRecord | None:
        with self._lock:
            row = self.adapter.fetchone(
                "SELECT data, narrative FROM analysis WHERE id = ?", (repo_id.key,)
            )
            if row is None:
                return None

            data = json.loads(row["data"])
            core_files = []
            for path in data.get("core_file_paths", []):
                stored = self.get_file(repo_id, path)
                if stored is None:
                    logger.warning(f"Core file {repo_id}:{path} missing from cache")
                    continue
                core_files.append(stored)

            narrative = json.loads(row["narrative"]) if row["narrative"] else None
            return analysis_from_document(data, core_files, narrative=narrative)

    def put_analysis(self, record: AnalysisRecord) -> None:
        document = json.dumps(analysis_to_document(record), ensure_ascii=False)
        narrative = json.dumps(record.narrative) if record.narrative is not None else None
        with self._lock:
            try:
                self.adapter.execute(
                    """
                    INSERT INTO analysis (id, repo_url, data, narrative, updated_at)
                    VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT (id) DO UPDATE SET
                        repo_url = excluded.repo_url,
                        data = excluded.data,
                        narrative = excluded.narrative,
                        narrative_updated_at = NULL,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (record.repository_id, record.source_url, document, narrative),
                )
                self.adapter.commit()
            except DatabaseError:
                self.adapter.rollback()
                raise

    def attach_narrative(self, repo_id: RepositoryIdentifier, narrative: Any) -> bool:
        with self._lock:
            try:
                cursor = self.adapter.execute(
                    """
                    UPDATE analysis
                    SET narrative = ?, narrative_updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    (json.dumps(narrative), repo_id.key),
                )
                updated = cursor.rowcount > 0
                self.adapter.commit()
            except DatabaseError:
                self.adapter.rollback()
                raise
            return updated

    def get_file(self, repo_id: RepositoryIdentifier, path: str) -> StoredFile | None:
        with self._lock:
            row = self.adapter.fetchone(
                """
                SELECT repository_id, path, content, language, size, content_hash
                FROM stored_files
                WHERE repository_id = ? AND path = ?
                """,
                (repo_id.key, path),
            )
        return _stored_file_from_row(row) if row else None

    def put_file(self, stored_file: StoredFile) -> None:
        with self._lock:
            try:
                self.adapter.execute(
                    """
                    INSERT INTO stored_files
                        (repository_id, path, content, language, size, content_hash, fetched_at)
                    VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT (repository_id, path) DO UPDATE SET
                        content = excluded.content,
                        language = excluded.language,
                        size = excluded.size,
                        content_hash = excluded.content_hash,
                        fetched_at = CURRENT_TIMESTAMP
                    """,
                    (
                        stored_file.repository_id,
                        stored_file.path,
                        stored_file.content,
                        stored_file.language,
                        stored_file.size,
                        stored_file.content_hash,
                    ),
                )
                self.adapter.commit()
            except DatabaseError:
                self.adapter.rollback()
                raise

    def list_files_by_repo(self, repo_id: RepositoryIdentifier) -> list[StoredFile]:
        with self._lock:
            rows = self.adapter.fetchall(
                """
                SELECT repository_id, path, content, language, size, content_hash
                FROM stored_files
                WHERE repository_id = ?
                ORDER BY path
                """,
                (repo_id.key,),
            )
        return [_stored_file_from_row(row) for row in rows]


class MemoryCacheStore(CacheStore):
    """Dict-backed cache store.

    Records are deep-copied on the way in and out, so callers cannot mutate
    the stored state, the same as with a database.
    """

    def __init__(self):
        self._analyses: dict[str, AnalysisRecord] = {}
        self._files: dict[tuple[str, str], StoredFile] = {}
        self._lock = threading.RLock()

    def get_analysis(self, repo_id: RepositoryIdentifier) -> AnalysisRecord | None:
        with self._lock:
            record = self._analyses.get(repo_id.key)
            if record is None:
                return None
            core_files = [
                self._files[(repo_id.key, f.path)]
                for f in record.core_files
                if (repo_id.key, f.path) in self._files
            ]
            return copy.deepcopy(replace(record, core_files=core_files))

    def put_analysis(self, record: AnalysisRecord) -> None:
        with self._lock:
            self._analyses[record.repository_id] = copy.deepcopy(record)

    def attach_narrative(self, repo_id: RepositoryIdentifier, narrative: Any) -> bool:
        with self._lock:
            record = self._analyses.get(repo_id.key)
            if record is None:
                return False
            record.narrative = copy.deepcopy(narrative)
            return True

    def get_file(self, repo_id: RepositoryIdentifier, path: str) -> StoredFile | None:
        with self._lock:
            stored = self._files.get((repo_id.key, path))
            return copy.deepcopy(stored) if stored else None

    def put_file(self, stored_file: StoredFile) -> None:
        with self._lock:
            key = (stored_file.repository_id, stored_file.path)
            self._files[key] = copy.deepcopy(stored_file)

    def list_files_by_repo(self, repo_id: RepositoryIdentifier) -> list[StoredFile]:
        with self._lock:
            files = [f for (repo, _), f in self._files.items() if repo == repo_id.key]
            return [copy.deepcopy(f) for f in sorted(files, key=lambda f: f.path)]


def _stored_file_from_row(row: dict[str, Any]) -> StoredFile:
    return StoredFile(
        repository_id=row["repository_id"],
        path=row["path"],
        content=row["content"],
        language=row["language"],
        size=row["size"],
        content_hash=row["content_hash"],
    )
