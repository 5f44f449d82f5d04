"""Parsing of hosting-service repository URLs."""

import re

from .errors import InvalidUrlError
from .models import RepositoryIdentifier

# https://github.com/owner/name[.git][/...], github.com/owner/name, git@github.com:owner/name.git
_GITHUB_URL = re.compile(
    r"^(?:(?:https?|git|ssh)://)?(?:[^@/\s]+@)?(?:www\.)?github\.com[/:]"
    r"(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)/"
    r"(?P<name>[A-Za-z0-9._-]+?)"
    r"(?:\.git)?/?(?:[/?#].*)?$",
    re.IGNORECASE,
)


def parse_repository_url(url: str) -> RepositoryIdentifier:
    """Parse a GitHub repository URL into a repository identifier.

    Owner and name are lower-cased, since GitHub treats them
    case-insensitively; a trailing ``.git`` and any path below the
    repository (``/tree/main``, ``/issues``) are ignored.

    Args:
        url: Repository URL in HTTPS, scheme-less or SSH form

    Returns:
        Repository identifier

    Raises:
        InvalidUrlError: If the URL is not a GitHub repository URL

    Example:
        >>> parse_repository_url("https://github.com/Octo/Hello-World.git")
        RepositoryIdentifier(owner='octo', name='hello-world')
    """
    match = _GITHUB_URL.match(url.strip()) if url else None
    if not match:
        raise InvalidUrlError(f"Not a GitHub repository URL: {url!r}")

    name = match.group("name")
    if name in (".", ".."):
        raise InvalidUrlError(f"Not a GitHub repository URL: {url!r}")

    return RepositoryIdentifier(owner=match.group("owner").lower(), name=name.lower())
