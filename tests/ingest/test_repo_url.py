"""Tests for repository URL parsing."""

import pytest

from ingest.errors import IngestError, InvalidUrlError
from ingest.models import RepositoryIdentifier
from ingest.repo_url import parse_repository_url

EXPECTED = RepositoryIdentifier(owner="octocat", name="hello-world")


class TestParseRepositoryUrl:
    """Tests for parse_repository_url."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/octocat/hello-world",
            "https://github.com/octocat/hello-world.git",
            "https://github.com/octocat/hello-world/",
            "http://www.github.com/octocat/hello-world",
            "github.com/octocat/hello-world",
            "git@github.com:octocat/hello-world.git",
            "ssh://git@github.com/octocat/hello-world.git",
            "https://github.com/Octocat/Hello-World",
            "https://github.com/octocat/hello-world/tree/main/src",
            "https://github.com/octocat/hello-world?tab=readme",
            "  https://github.com/octocat/hello-world  ",
        ],
    )
    def test_equivalent_urls_yield_same_identifier(self, url):
        assert parse_repository_url(url) == EXPECTED

    def test_dotted_repository_name(self):
        repo = parse_repository_url("https://github.com/vercel/next.js")
        assert repo.key == "vercel/next.js"

    def test_dotted_name_with_git_suffix(self):
        repo = parse_repository_url("https://github.com/vercel/next.js.git")
        assert repo.name == "next.js"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "not a url",
            "https://gitlab.com/octocat/hello-world",
            "https://github.com/octocat",
            "https://github.com/",
            "https://github.com/octocat/..",
            "https://notgithub.com/octocat/hello-world",
        ],
    )
    def test_invalid_urls(self, url):
        with pytest.raises(InvalidUrlError):
            parse_repository_url(url)

    def test_invalid_url_is_value_error(self):
        with pytest.raises(ValueError):
            parse_repository_url("ftp://example.com")
        assert issubclass(InvalidUrlError, IngestError)


class TestRepositoryIdentifier:
    """Tests for RepositoryIdentifier keys."""

    def test_key_and_str(self):
        assert EXPECTED.key == "octocat/hello-world"
        assert str(EXPECTED) == "octocat/hello-world"

    def test_from_key_normalizes_case(self):
        assert RepositoryIdentifier.from_key("OctoCat/Hello-World") == EXPECTED

    @pytest.mark.parametrize("key", ["octocat", "octocat/", "/hello", "a/b/c"])
    def test_from_key_rejects_malformed(self, key):
        with pytest.raises(ValueError):
            RepositoryIdentifier.from_key(key)

    def test_identifier_is_immutable(self):
        with pytest.raises(AttributeError):
            EXPECTED.owner = "someone"
