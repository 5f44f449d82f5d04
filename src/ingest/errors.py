"""Errors raised by the ingestion pipeline and retrieval services."""


class IngestError(Exception):
    """Base exception for ingestion and retrieval errors."""


class InvalidUrlError(IngestError, ValueError):
    """URL does not name a repository on a supported hosting service."""


class AnalysisFailedError(IngestError):
    """A mandatory ingestion step failed; nothing was persisted.

    Attributes:
        cause: The underlying exception
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class NotAnalyzedError(IngestError):
    """No analysis record exists for the repository.

    Attributes:
        repo_id: Key of the repository that was requested
    """

    def __init__(self, repo_id: str):
        super().__init__(f"Repository {repo_id} has not been analyzed")
        self.repo_id = repo_id
