"""Data models for repository ingestion and the cached analysis record."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

Sentiment = Literal["positive", "negative", "neutral"]


@dataclass(frozen=True)
class RepositoryIdentifier:
    """Owner/name pair naming a hosted repository."""

    owner: str
    name: str

    @property
    def key(self) -> str:
        """Cache key for this repository ("owner/name")."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_key(cls, key: str) -> "RepositoryIdentifier":
        """Rebuild an identifier from its "owner/name" key."""
        owner, sep, name = key.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Invalid repository key: {key!r}")
        return cls(owner=owner.lower(), name=name.lower())

    def __str__(self) -> str:
        return self.key


@dataclass
class CommitRecord:
    """A single commit as returned by the hosting API.

    ``sentiment`` is derived during ingestion and is None for raw records.
    """

    sha: str
    author: str | None
    authored_date: datetime | None
    message: str
    sentiment: Sentiment | None = None


@dataclass
class FileTreeEntry:
    """One entry of a recursive file tree listing."""

    path: str
    kind: Literal["blob", "tree"]
    size: int | None = None


@dataclass
class StoredFile:
    """Full decoded content of one repository file, as persisted."""

    repository_id: str
    path: str
    content: str
    language: str | None
    size: int
    content_hash: str


@dataclass
class ContributorCount:
    """Number of commits attributed to one author display name."""

    name: str
    count: int


@dataclass
class Metrics:
    """Commit-message derived repository metrics.

    ``churn_rate`` is a placeholder and is not computed from diff statistics.
    """

    churn_rate: float
    refactor_count: int
    bug_fix_count: int


@dataclass
class AnalysisRecord:
    """Aggregate result of ingesting one repository."""

    repository_id: str
    source_url: str
    total_commits: int
    contributor_counts: list[ContributorCount]
    commits: list[CommitRecord]
    file_paths: list[str]
    readme: str | None
    package_manifest: dict[str, Any] | None
    core_files: list[StoredFile]
    metrics: Metrics
    narrative: Any = field(default=None, compare=False)


def as_repository_id(value: "RepositoryIdentifier | str") -> RepositoryIdentifier:
    """Accept either an identifier or its "owner/name" key."""
    if isinstance(value, RepositoryIdentifier):
        return value
    return RepositoryIdentifier.from_key(value)


def format_timestamp(value: datetime | None) -> str | None:
    """Format a datetime as ISO-8601, or None."""
    return value.isoformat() if value is not None else None


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (accepting a trailing 'Z').

    Returns:
        Timezone-aware datetime, or None when the value is empty or malformed
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def analysis_to_document(record: AnalysisRecord) -> dict[str, Any]:
    """Serialize an analysis record to a JSON-compatible document.

    Core files are referenced by path only; their content lives in the
    stored-file table.
    """
    return {
        "repository_id": record.repository_id,
        "source_url": record.source_url,
        "total_commits": record.total_commits,
        "contributor_counts": [
            {"name": c.name, "count": c.count} for c in record.contributor_counts
        ],
        "commits": [
            {
                "sha": c.sha,
                "author": c.author,
                "authored_date": format_timestamp(c.authored_date),
                "message": c.message,
                "sentiment": c.sentiment,
            }
            for c in record.commits
        ],
        "file_paths": list(record.file_paths),
        "readme": record.readme,
        "package_manifest": record.package_manifest,
        "core_file_paths": [f.path for f in record.core_files],
        "metrics": {
            "churn_rate": record.metrics.churn_rate,
            "refactor_count": record.metrics.refactor_count,
            "bug_fix_count": record.metrics.bug_fix_count,
        },
    }


def analysis_from_document(
    data: dict[str, Any],
    core_files: list[StoredFile],
    narrative: Any = None,
) -> AnalysisRecord:
    """Rebuild an analysis record from its stored document.

    Args:
        data: Document produced by ``analysis_to_document``
        core_files: Stored files resolved for ``data["core_file_paths"]``
        narrative: Opaque narrative blob attached to the record, if any

    Raises:
        KeyError: If a required field is missing
    """
    metrics = data["metrics"]
    return AnalysisRecord(
        repository_id=data["repository_id"],
        source_url=data["source_url"],
        total_commits=data["total_commits"],
        contributor_counts=[
            ContributorCount(name=c["name"], count=c["count"])
            for c in data.get("contributor_counts", [])
        ],
        commits=[
            CommitRecord(
                sha=c["sha"],
                author=c.get("author"),
                authored_date=parse_timestamp(c.get("authored_date")),
                message=c.get("message", ""),
                sentiment=c.get("sentiment"),
            )
            for c in data.get("commits", [])
        ],
        file_paths=list(data.get("file_paths", [])),
        readme=data.get("readme"),
        package_manifest=data.get("package_manifest"),
        core_files=core_files,
        metrics=Metrics(
            churn_rate=metrics["churn_rate"],
            refactor_count=metrics["refactor_count"],
            bug_fix_count=metrics["bug_fix_count"],
        ),
        narrative=narrative,
    )
