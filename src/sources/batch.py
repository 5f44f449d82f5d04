"""Concurrent per-file fetching with per-file failure tolerance."""

from concurrent.futures import ThreadPoolExecutor

from common.logger import get_logger
from ingest.models import RepositoryIdentifier

from .base import SourceClient, SourceError

logger = get_logger(__name__)


def fetch_files(
    client: SourceClient,
    repo_id: RepositoryIdentifier,
    paths: list[str],
    max_workers: int = 8,
) -> dict[str, str]:
    """Fetch several files concurrently, dropping the ones that fail.

    All fetches are joined before returning. A ``SourceError`` for one path
    is logged and omitted from the result without affecting its siblings.

    Args:
        client: Remote source client
        repo_id: Repository the paths belong to
        paths: File paths to fetch
        max_workers: Maximum number of concurrent requests

    Returns:
        Mapping of path to decoded content, in the order of ``paths``
    """
    if not paths:
        return {}

    def fetch(path: str) -> str | None:
        try:
            return client.get_file_content(repo_id, path)
        except SourceError as e:
            logger.warning(f"Skipping {repo_id}:{path}: {e}")
            return None

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(paths)))) as executor:
        results = list(executor.map(fetch, paths))

    return {path: content for path, content in zip(paths, results) if content is not None}
