"""Abstract base class and errors for remote source clients."""

from abc import ABC, abstractmethod

from ingest.models import CommitRecord, FileTreeEntry, RepositoryIdentifier


class SourceClient(ABC):
    """Base class for repository hosting API clients.

    Implementations return raw records and never cache or retry; callers
    decide which failures are tolerable.
    """

    @abstractmethod
    def list_commits(self, repo_id: RepositoryIdentifier, limit: int) -> list[CommitRecord]:
        """List the most recent commits of a repository.

        Args:
            repo_id: Repository to query
            limit: Maximum number of commits (a single page)

        Returns:
            Commit records without sentiment, in API order

        Raises:
            NotFoundError: If the repository does not exist
            RateLimitError: If the rate limit is exceeded
            UpstreamError: If the request fails or the response is malformed
        """
        pass

    @abstractmethod
    def get_tree(self, repo_id: RepositoryIdentifier, at_commit: str) -> list[FileTreeEntry]:
        """Get the recursive file tree of a repository snapshot.

        Args:
            repo_id: Repository to query
            at_commit: Commit SHA of the snapshot

        Returns:
            Flat list of tree entries, paths separated by '/'

        Raises:
            NotFoundError: If the repository or commit does not exist
            RateLimitError: If the rate limit is exceeded
            UpstreamError: If the request fails or the response is malformed
        """
        pass

    @abstractmethod
    def get_file_content(self, repo_id: RepositoryIdentifier, path: str) -> str:
        """Get the decoded text content of one file.

        Raises:
            NotFoundError: If the path does not exist
            RateLimitError: If the rate limit is exceeded
            UpstreamError: If the request fails or the content cannot be decoded
        """
        pass

    @abstractmethod
    def get_readme(self, repo_id: RepositoryIdentifier) -> str | None:
        """Get the decoded README of a repository.

        Raises:
            NotFoundError: If the repository has no README
            RateLimitError: If the rate limit is exceeded
            UpstreamError: If the request fails or the content cannot be decoded
        """
        pass


class SourceError(Exception):
    """Base exception for remote source failures."""

    pass


class NotFoundError(SourceError):
    """Requested repository, path or README does not exist."""

    pass


class RateLimitError(SourceError):
    """Rate limit exceeded."""

    pass


class UpstreamError(SourceError):
    """Request failed, was rejected, or returned an unusable response."""

    pass
