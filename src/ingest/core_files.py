"""Selection of core files and language detection for stored files."""

import hashlib
import re
from pathlib import PurePosixPath

from common.constants import MAX_CORE_FILES

from .models import FileTreeEntry, StoredFile

# Files fetched eagerly when present at these exact paths
CORE_FILE_NAMES = (
    "package.json",
    "README.md",
    "readme.md",
    "README",
    "Dockerfile",
    "docker-compose.yml",
    "requirements.txt",
    "pyproject.toml",
    "setup.py",
    "Cargo.toml",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "Gemfile",
    "composer.json",
    "tsconfig.json",
    "Makefile",
)

# Conventional entry points, optionally under a common source directory
ENTRY_POINT_PATTERN = re.compile(
    r"^(?:(?:src|app|lib|server|cmd)/)?(?:index|main|app|server)"
    r"\.(?:js|jsx|ts|tsx|mjs|py|go|rs|java|rb|php)$"
)

_LANGUAGE_BY_SUFFIX = {
    ".py": "Python",
    ".pyi": "Python",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".java": "Java",
    ".kt": "Kotlin",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".cs": "C#",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".swift": "Swift",
    ".scala": "Scala",
    ".sh": "Shell",
    ".html": "HTML",
    ".css": "CSS",
    ".md": "Markdown",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".json": "JSON",
    ".toml": "TOML",
    ".xml": "XML",
    ".gradle": "Gradle",
}

_LANGUAGE_BY_NAME = {
    "Dockerfile": "Dockerfile",
    "Makefile": "Makefile",
    "Gemfile": "Ruby",
    "README": "Markdown",
}


def select_core_files(tree: list[FileTreeEntry], limit: int = MAX_CORE_FILES) -> list[str]:
    """Pick the allowlisted core files present in a tree.

    Exact-name matches come first in allowlist order, followed by entry
    points in tree order.

    Args:
        tree: Recursive tree listing
        limit: Maximum number of paths to return

    Returns:
        Paths of core files, at most ``limit``
    """
    blobs = [entry.path for entry in tree if entry.kind == "blob"]
    present = set(blobs)

    selected = [name for name in CORE_FILE_NAMES if name in present]
    selected.extend(
        path for path in blobs if ENTRY_POINT_PATTERN.match(path) and path not in selected
    )
    return selected[:limit]


def detect_language(path: str) -> str | None:
    """Guess a file's language from its name or suffix."""
    pure = PurePosixPath(path)
    if pure.name in _LANGUAGE_BY_NAME:
        return _LANGUAGE_BY_NAME[pure.name]
    return _LANGUAGE_BY_SUFFIX.get(pure.suffix.lower())


def make_stored_file(repository_id: str, path: str, content: str) -> StoredFile:
    """Build a stored file record with size, language and content hash."""
    encoded = content.encode("utf-8")
    return StoredFile(
        repository_id=repository_id,
        path=path,
        content=content,
        language=detect_language(path),
        size=len(encoded),
        content_hash=hashlib.sha256(encoded).hexdigest(),
    )
