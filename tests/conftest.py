"""Shared fixtures: a call-counting fake source client and cache stores."""

import threading
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from cache.db import DatabaseConfig, create_database
from cache.store import DatabaseCacheStore, MemoryCacheStore
from ingest.models import CommitRecord, FileTreeEntry, RepositoryIdentifier
from sources.base import NotFoundError, SourceClient, UpstreamError

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeSourceClient(SourceClient):
    """In-memory source client that records every call it receives."""

    def __init__(self, commits=None, tree=None, files=None, readme=None, failing=()):
        self.commits = commits if commits is not None else []
        self.tree = tree if tree is not None else []
        self.files = files or {}
        self.readme = readme
        self.failing = set(failing)
        self.commit_error = None
        self.tree_error = None
        self.readme_error = None
        self.calls = Counter()
        self.file_requests = []
        self._lock = threading.Lock()

    def _record(self, name):
        with self._lock:
            self.calls[name] += 1

    def list_commits(self, repo_id, limit):
        self._record("list_commits")
        if self.commit_error:
            raise self.commit_error
        return [CommitRecord(c.sha, c.author, c.authored_date, c.message) for c in self.commits[:limit]]

    def get_tree(self, repo_id, at_commit):
        self._record("get_tree")
        self.tree_commit = at_commit
        if self.tree_error:
            raise self.tree_error
        return list(self.tree)

    def get_file_content(self, repo_id, path):
        self._record("get_file_content")
        with self._lock:
            self.file_requests.append(path)
        if path in self.failing:
            raise UpstreamError(f"Could not decode content of {repo_id}:{path}")
        if path not in self.files:
            raise NotFoundError(f"Not found: {path}")
        return self.files[path]

    def get_readme(self, repo_id):
        self._record("get_readme")
        if self.readme_error:
            raise self.readme_error
        if self.readme is None:
            raise NotFoundError("No README")
        return self.readme

    @property
    def total_calls(self):
        return sum(self.calls.values())


def make_commit(sha, message, days_ago=0, author="Ada", now=NOW):
    return CommitRecord(
        sha=sha,
        author=author,
        authored_date=now - timedelta(days=days_ago),
        message=message,
    )


@pytest.fixture
def repo_id():
    return RepositoryIdentifier(owner="octocat", name="hello-world")


@pytest.fixture
def commit_factory():
    """Build commits dated relative to a fixed reference time."""
    return make_commit


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sample_client():
    """Fake client holding a small Node.js repository."""
    commits = [
        make_commit("c3", "feat: add login form", days_ago=1, author="Ada"),
        make_commit("c2", "fix: critical bug in token refresh", days_ago=2, author="Grace"),
        make_commit("c1", "Refactor auth module", days_ago=3, author=None),
    ]
    tree = [
        FileTreeEntry("package.json", "blob", 120),
        FileTreeEntry("README.md", "blob", 40),
        FileTreeEntry("src", "tree"),
        FileTreeEntry("src/index.ts", "blob", 80),
        FileTreeEntry("src/auth", "tree"),
        FileTreeEntry("src/auth/login.ts", "blob", 300),
        FileTreeEntry("src/utils/token.ts", "blob", 200),
        FileTreeEntry("docs/readme.md", "blob", 50),
    ]
    files = {
        "package.json": '{"name": "hello", "main": "server.js", "dependencies": {"express": "^4"}}',
        "README.md": "# Hello\n",
        "src/index.ts": "import { login } from './auth/login';\n",
        "src/auth/login.ts": "export function login() { return true; }\n",
        "src/utils/token.ts": "export const token = 'x';\n",
        "docs/readme.md": "docs\n",
    }
    return FakeSourceClient(commits=commits, tree=tree, files=files, readme="# Hello\n")


@pytest.fixture
def memory_store():
    return MemoryCacheStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """Database cache store on a fresh SQLite file."""
    adapter = create_database(DatabaseConfig(db_type="sqlite", db_path=tmp_path / "cache.db"))
    adapter.connect()
    store = DatabaseCacheStore(adapter)
    store.initialize()
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Each cache store implementation in turn."""
    return request.getfixturevalue(f"{request.param}_store")
