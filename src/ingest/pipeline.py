"""Repository ingestion: fetch once, normalise, persist one analysis record."""

import json
import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from cache.db import DatabaseError
from cache.store import CacheStore
from common.constants import PACKAGE_MANIFEST_PATH, UNKNOWN_AUTHOR
from common.env import env
from common.logger import get_logger
from sources.base import NotFoundError, SourceClient, SourceError
from sources.batch import fetch_files

from .core_files import make_stored_file, select_core_files
from .errors import AnalysisFailedError, NotAnalyzedError
from .models import (
    AnalysisRecord,
    CommitRecord,
    ContributorCount,
    Metrics,
    RepositoryIdentifier,
    as_repository_id,
)
from .repo_url import parse_repository_url
from .sentiment import classify

logger = get_logger(__name__)

# No diff statistics are fetched, so churn has no real source yet
CHURN_RATE_PLACEHOLDER = 0.0


class IngestionPipeline:
    """Turn a repository URL into a cached analysis record.

    A repository is fetched from the remote source at most once while its
    record is cached. Concurrent ``analyze`` calls for the same repository
    are serialised, and the ones that waited are served from the cache.
    """

    def __init__(
        self,
        client: SourceClient,
        store: CacheStore,
        commit_limit: int | None = None,
        max_workers: int | None = None,
    ):
        """Initialize pipeline.

        Args:
            client: Remote source client
            store: Cache store receiving the record and core files
            commit_limit: Commits fetched per repository (default: COMMIT_LIMIT)
            max_workers: Concurrent core file fetches (default: FETCH_WORKERS)
        """
        self.client = client
        self.store = store
        self.commit_limit = commit_limit or env.commit_limit()
        self.max_workers = max_workers or env.fetch_workers()
        # key -> (lock, number of callers holding or waiting on it)
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    def analyze(self, url: str) -> AnalysisRecord:
        """Analyze a repository, using the cached record when there is one.

        Args:
            url: Repository URL

        Returns:
            The analysis record (with any attached narrative when cached)

        Raises:
            InvalidUrlError: If the URL is not a repository URL
            AnalysisFailedError: If a mandatory fetch or the final write fails
        """
        repo_id = parse_repository_url(url)

        cached = self.store.get_analysis(repo_id)
        if cached is not None:
            logger.info(f"Cache hit for {repo_id}")
            return cached

        with self._in_flight(repo_id):
            cached = self.store.get_analysis(repo_id)
            if cached is not None:
                logger.info(f"Cache hit for {repo_id} after waiting on in-flight analysis")
                return cached

            logger.info(f"Cache miss for {repo_id}, fetching from source")
            return self._ingest(repo_id, url)

    def attach_narrative(self, repo_id: RepositoryIdentifier | str, narrative: Any) -> bool:
        """Attach an opaque narrative blob to a cached record.

        Raises:
            NotAnalyzedError: If the repository has no analysis record
        """
        repo_id = as_repository_id(repo_id)
        if not self.store.attach_narrative(repo_id, narrative):
            raise NotAnalyzedError(repo_id.key)
        logger.debug(f"Attached narrative to {repo_id}")
        return True

    @contextmanager
    def _in_flight(self, repo_id: RepositoryIdentifier):
        """Serialise analyses of one repository.

        The per-repository lock is dropped once no caller holds or waits on it.
        """
        key = repo_id.key
        with self._locks_guard:
            lock, users = self._locks.get(key, (None, 0))
            lock = lock or threading.Lock()
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                _, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def _ingest(self, repo_id: RepositoryIdentifier, url: str) -> AnalysisRecord:
        try:
            commits = self.client.list_commits(repo_id, self.commit_limit)
            if not commits:
                raise AnalysisFailedError(f"Repository {repo_id} has no commits")
            head = _newest_commit(commits)
            tree = self.client.get_tree(repo_id, head.sha)
        except SourceError as e:
            raise AnalysisFailedError(f"Failed to fetch {repo_id}: {e}", cause=e) from e

        readme = self._fetch_readme(repo_id)

        core_paths = select_core_files(tree)
        contents = fetch_files(self.client, repo_id, core_paths, max_workers=self.max_workers)
        core_files = [make_stored_file(repo_id.key, path, text) for path, text in contents.items()]

        commits = [replace(c, sentiment=classify(c.message)) for c in commits]
        record = AnalysisRecord(
            repository_id=repo_id.key,
            source_url=url,
            total_commits=len(commits),
            contributor_counts=count_contributors(commits),
            commits=commits,
            file_paths=[entry.path for entry in tree if entry.kind == "blob"],
            readme=readme,
            package_manifest=_parse_manifest(contents.get(PACKAGE_MANIFEST_PATH)),
            core_files=core_files,
            metrics=compute_metrics(commits),
        )

        try:
            for stored_file in core_files:
                self.store.put_file(stored_file)
            self.store.put_analysis(record)
        except DatabaseError as e:
            raise AnalysisFailedError(f"Failed to persist {repo_id}: {e}", cause=e) from e

        logger.info(
            f"Analyzed [bold]{repo_id}[/bold]: {len(commits)} commits, "
            f"{len(record.file_paths)} files, {len(core_files)}/{len(core_paths)} core files"
        )
        return record

    def _fetch_readme(self, repo_id: RepositoryIdentifier) -> str | None:
        try:
            return self.client.get_readme(repo_id)
        except NotFoundError:
            logger.debug(f"No README found for {repo_id}")
        except SourceError as e:
            logger.warning(f"README fetch failed for {repo_id}: {e}")
        return None


def count_contributors(commits: list[CommitRecord]) -> list[ContributorCount]:
    """Count commits per author display name, in first-seen order."""
    counts = Counter(commit.author or UNKNOWN_AUTHOR for commit in commits)
    return [ContributorCount(name=name, count=count) for name, count in counts.items()]


def compute_metrics(commits: list[CommitRecord]) -> Metrics:
    """Count refactor and fix commits by message substring (case-insensitive)."""
    messages = [commit.message.lower() for commit in commits]
    return Metrics(
        churn_rate=CHURN_RATE_PLACEHOLDER,
        refactor_count=sum("refactor" in message for message in messages),
        bug_fix_count=sum("fix" in message for message in messages),
    )


def _newest_commit(commits: list[CommitRecord]) -> CommitRecord:
    # API order is newest first; prefer dates when every commit has one
    if all(commit.authored_date is not None for commit in commits):
        return max(commits, key=lambda c: _as_utc(c.authored_date))
    return commits[0]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_manifest(raw: str | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        manifest = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring unparseable {PACKAGE_MANIFEST_PATH}: {e}")
        return None
    return manifest if isinstance(manifest, dict) else None
