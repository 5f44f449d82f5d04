"""Keyword relevance retrieval over a cached repository.

Ranking is a pure function of static text features: case-folded keywords
matched as substrings of file names and full paths, with a two-tier
weight. There is no semantic embedding and no learned model.

Usage:
    engine = RelevanceEngine(GitHubClient(), store)
    bundle = engine.retrieve_context("octocat/hello-world", "how does login work")
"""

import re
from dataclasses import asdict, dataclass, field, replace
from typing import Any

from cache.db import DatabaseError
from cache.store import CacheStore
from common.constants import (
    FILE_CONTENT_CHAR_LIMIT,
    FILE_TREE_LIMIT,
    FILENAME_MATCH_WEIGHT,
    MAX_RELEVANT_FILES,
    MIN_KEYWORD_LENGTH,
    PATH_MATCH_WEIGHT,
    README_CHAR_LIMIT,
)
from common.env import env
from common.logger import get_logger
from ingest.core_files import make_stored_file
from ingest.errors import NotAnalyzedError
from ingest.models import AnalysisRecord, RepositoryIdentifier, StoredFile, as_repository_id
from sources.base import SourceClient
from sources.batch import fetch_files

logger = get_logger(__name__)

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


@dataclass
class ContextBundle:
    """Context handed to a question-answering collaborator.

    File contents, the tree and the README are truncated to their budgets;
    the stored copies stay full length.
    """

    repository_id: str
    file_tree: list[str]
    readme: str | None
    package_manifest: dict[str, Any] | None
    core_files: list[StoredFile] = field(default_factory=list)
    relevant_files: list[StoredFile] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_keywords(question: str, min_length: int = MIN_KEYWORD_LENGTH) -> set[str]:
    """Extract lower-cased keywords from a free-text question.

    Whitespace tokens are unioned with identifier-like substrings so that
    ``"login()?"`` still yields ``login``.
    """
    lowered = question.lower()
    keywords = set(lowered.split())
    keywords.update(IDENTIFIER_PATTERN.findall(lowered))
    return {keyword for keyword in keywords if len(keyword) >= min_length}


def score_path(path: str, keywords: set[str]) -> int:
    """Score one path against a keyword set.

    Each keyword earns the file-name weight when it occurs in the last path
    segment and, independently, the path weight when it occurs anywhere in
    the path.
    """
    lowered = path.lower()
    filename = lowered.rsplit("/", 1)[-1]
    score = 0
    for keyword in keywords:
        if keyword in filename:
            score += FILENAME_MATCH_WEIGHT
        if keyword in lowered:
            score += PATH_MATCH_WEIGHT
    return score


def rank_paths(paths: list[str], question: str, limit: int = MAX_RELEVANT_FILES) -> list[str]:
    """Return the top ``limit`` paths with a positive score, best first.

    Ties keep the original path order.
    """
    keywords = extract_keywords(question)
    if not keywords:
        return []

    scored = [(score_path(path, keywords), path) for path in paths]
    ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: -item[0])
    return [path for _, path in ranked[:limit]]


class RelevanceEngine:
    """Selects files relevant to a question, fetching the ones not cached."""

    def __init__(
        self,
        client: SourceClient,
        store: CacheStore,
        max_workers: int | None = None,
    ):
        self.client = client
        self.store = store
        self.max_workers = max_workers or env.fetch_workers()

    def retrieve_context(
        self, repo_id: RepositoryIdentifier | str, question: str
    ) -> ContextBundle:
        """Build the context bundle for a question about an analyzed repository.

        Args:
            repo_id: Repository identifier or its "owner/name" key
            question: Free-text question

        Returns:
            Bundle with truncated tree, README, manifest, core and relevant files

        Raises:
            NotAnalyzedError: If the repository has no analysis record
        """
        repo_id = as_repository_id(repo_id)
        record = self._require_record(repo_id)

        ranked = rank_paths(record.file_paths, question)
        logger.debug(f"Ranked {len(ranked)} file(s) for {repo_id}: {ranked}")
        relevant = self._load_files(repo_id, ranked)

        return ContextBundle(
            repository_id=repo_id.key,
            file_tree=record.file_paths[:FILE_TREE_LIMIT],
            readme=record.readme[:README_CHAR_LIMIT] if record.readme else record.readme,
            package_manifest=record.package_manifest,
            core_files=[_truncated(f) for f in record.core_files],
            relevant_files=[_truncated(f) for f in relevant],
        )

    def get_file(self, repo_id: RepositoryIdentifier | str, path: str) -> StoredFile:
        """Return the full stored file, fetching and persisting it on a miss.

        Raises:
            NotAnalyzedError: If the repository has no analysis record
            SourceError: If the file cannot be fetched
        """
        repo_id = as_repository_id(repo_id)
        cached = self.store.get_file(repo_id, path)
        if cached is not None:
            return cached

        self._require_record(repo_id)
        content = self.client.get_file_content(repo_id, path)
        stored = make_stored_file(repo_id.key, path, content)
        self.store.put_file(stored)
        return stored

    def _require_record(self, repo_id: RepositoryIdentifier) -> AnalysisRecord:
        record = self.store.get_analysis(repo_id)
        if record is None:
            raise NotAnalyzedError(repo_id.key)
        return record

    def _load_files(self, repo_id: RepositoryIdentifier, paths: list[str]) -> list[StoredFile]:
        cached = {}
        for path in paths:
            stored = self.store.get_file(repo_id, path)
            if stored is not None:
                cached[path] = stored

        missing = [path for path in paths if path not in cached]
        if missing:
            logger.info(f"Fetching {len(missing)} uncached file(s) for {repo_id}")
            for path, content in fetch_files(
                self.client, repo_id, missing, max_workers=self.max_workers
            ).items():
                stored = make_stored_file(repo_id.key, path, content)
                try:
                    self.store.put_file(stored)
                except DatabaseError as e:
                    # Still served for this request, fetched again next time
                    logger.warning(f"Failed to cache {path} for {repo_id}: {e}")
                cached[path] = stored

        return [cached[path] for path in paths if path in cached]


def _truncated(stored: StoredFile, limit: int = FILE_CONTENT_CHAR_LIMIT) -> StoredFile:
    if len(stored.content) <= limit:
        return stored
    return replace(stored, content=stored.content[:limit])
