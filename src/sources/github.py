"""GitHub REST API client for repository metadata and file contents."""

import base64
import binascii
from typing import Any
from urllib.parse import quote

import requests

from common.env import env
from common.logger import get_logger
from ingest.models import CommitRecord, FileTreeEntry, RepositoryIdentifier, parse_timestamp

from .base import NotFoundError, RateLimitError, SourceClient, UpstreamError
from .rate_limiter import RateLimiter

logger = get_logger(__name__)


class GitHubClient(SourceClient):
    """Client for the GitHub REST API (v3).

    Provides the four reads the ingestion pipeline needs:
    - one page of commits
    - the recursive tree of a commit
    - the README
    - the content of an arbitrary path

    Rate limit: unauthenticated requests get 60 per hour from GitHub; set
    GITHUB_TOKEN for 5000. The client only paces itself, it never retries.

    API Documentation: https://docs.github.com/en/rest
    """

    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        requests_per_minute: int | None = None,
        timeout: float | None = None,
    ):
        """Initialize GitHub client.

        Args:
            token: API token (default: GITHUB_TOKEN from the environment)
            base_url: API base URL (default: GITHUB_API_URL)
            requests_per_minute: Client-side pacing (default: GITHUB_REQUESTS_PER_MINUTE)
            timeout: Per-request timeout in seconds (default: GITHUB_TIMEOUT)
        """
        self.base_url = (base_url or env.github_api_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else env.github_timeout()
        self.rate_limiter = RateLimiter(
            requests_per_period=(
                requests_per_minute
                if requests_per_minute is not None
                else env.github_requests_per_minute()
            ),
            period_seconds=60,
        )
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": "git-cinematic/0.1",
            }
        )
        token = token if token is not None else env.github_token()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def list_commits(self, repo_id: RepositoryIdentifier, limit: int) -> list[CommitRecord]:
        """List up to ``limit`` recent commits (a single page)."""
        per_page = max(1, min(limit, self.MAX_PAGE_SIZE))
        data = self._get(f"/repos/{repo_id.key}/commits", params={"per_page": per_page})
        if not isinstance(data, list):
            raise UpstreamError(f"Unexpected commit listing for {repo_id}")

        commits = []
        for item in data[:per_page]:
            if not isinstance(item, dict) or "sha" not in item:
                raise UpstreamError(f"Malformed commit entry for {repo_id}")
            commit = item.get("commit") or {}
            author = commit.get("author") or {}
            commits.append(
                CommitRecord(
                    sha=item["sha"],
                    author=author.get("name") or None,
                    authored_date=parse_timestamp(author.get("date")),
                    message=commit.get("message") or "",
                )
            )

        logger.debug(f"Fetched {len(commits)} commits for {repo_id}")
        return commits

    def get_tree(self, repo_id: RepositoryIdentifier, at_commit: str) -> list[FileTreeEntry]:
        """Get the recursive tree listing at ``at_commit``."""
        data = self._get(
            f"/repos/{repo_id.key}/git/trees/{at_commit}", params={"recursive": "1"}
        )
        if not isinstance(data, dict) or not isinstance(data.get("tree"), list):
            raise UpstreamError(f"Unexpected tree listing for {repo_id}@{at_commit}")
        if data.get("truncated"):
            logger.warning(f"Tree listing for {repo_id} was truncated by GitHub")

        entries = []
        for item in data["tree"]:
            path = item.get("path")
            kind = item.get("type")
            if not path or kind not in ("blob", "tree"):
                # Submodules show up as "commit" entries
                continue
            entries.append(FileTreeEntry(path=path, kind=kind, size=item.get("size")))
        return entries

    def get_file_content(self, repo_id: RepositoryIdentifier, path: str) -> str:
        """Get the decoded content of the file at ``path``."""
        data = self._get(f"/repos/{repo_id.key}/contents/{quote(path)}")
        if not isinstance(data, dict) or data.get("type") != "file":
            raise UpstreamError(f"{repo_id}:{path} is not a file")
        return self._decode_content(data, f"{repo_id}:{path}")

    def get_readme(self, repo_id: RepositoryIdentifier) -> str | None:
        """Get the decoded README."""
        data = self._get(f"/repos/{repo_id.key}/readme")
        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected README response for {repo_id}")
        return self._decode_content(data, f"{repo_id}:README")

    def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Issue a GET request and return the decoded JSON body.

        Raises:
            NotFoundError: On HTTP 404
            RateLimitError: On HTTP 429, or 403 with an exhausted quota
            UpstreamError: On any other failure
        """
        self.rate_limiter.wait_if_needed()
        url = f"{self.base_url}{endpoint}"

        try:
            logger.debug(f"GET {url}")
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout as e:
            raise UpstreamError(f"GitHub API timeout for {endpoint}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 404:
                raise NotFoundError(f"Not found: {endpoint}") from e
            if status == 429 or (status == 403 and _quota_exhausted(e.response)):
                raise RateLimitError("GitHub rate limit exceeded") from e
            raise UpstreamError(f"GitHub API error ({status}) for {endpoint}") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"GitHub API error: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Malformed JSON from {endpoint}") from e

    @staticmethod
    def _decode_content(data: dict[str, Any], label: str) -> str:
        """Decode a base64 contents payload to UTF-8 text."""
        content = data.get("content")
        if data.get("encoding") != "base64" or not isinstance(content, str):
            raise UpstreamError(f"Unsupported content encoding for {label}")
        try:
            return base64.b64decode(content).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise UpstreamError(f"Could not decode content of {label}") from e


def _quota_exhausted(response: requests.Response) -> bool:
    return response.headers.get("X-RateLimit-Remaining") == "0"
