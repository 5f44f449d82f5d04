"""Environment configuration interface for git-cinematic.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def github_token() -> str:
        """Get the GitHub API token.

        Returns:
            Token string, empty when requests should be unauthenticated
        """
        return os.getenv("GITHUB_TOKEN", "").strip()

    @staticmethod
    def github_api_url() -> str:
        """Get the GitHub REST API base URL.

        Returns:
            Base URL without trailing slash, defaults to https://api.github.com
        """
        return os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")

    @staticmethod
    def github_requests_per_minute() -> int:
        """Get the client-side request budget per minute.

        Returns:
            Requests per minute, defaults to 60
        """
        return int(os.getenv("GITHUB_REQUESTS_PER_MINUTE", "60"))

    @staticmethod
    def github_timeout() -> float:
        """Get the per-request timeout in seconds.

        Returns:
            Timeout, defaults to 30 seconds
        """
        return float(os.getenv("GITHUB_TIMEOUT", "30"))

    @staticmethod
    def commit_limit() -> int:
        """Get the number of commits fetched per repository.

        Returns:
            Commit page size, defaults to 100
        """
        return int(os.getenv("COMMIT_LIMIT", "100"))

    @staticmethod
    def fetch_workers() -> int:
        """Get the number of concurrent per-file fetches.

        Returns:
            Worker count, defaults to 8
        """
        return int(os.getenv("FETCH_WORKERS", "8"))

    @staticmethod
    def database_type() -> str:
        """Get the database type (sqlite or postgresql).

        Returns:
            Database type, defaults to 'sqlite'
        """
        return os.getenv("DATABASE_TYPE", "sqlite")

    @staticmethod
    def database_path() -> Path:
        """Get the SQLite database file path.

        Returns:
            Path to SQLite database file, defaults to ./data/git_cinematic.db
        """
        return Path(os.getenv("DATABASE_PATH", "./data/git_cinematic.db"))

    @staticmethod
    def postgres_host() -> str:
        """Get PostgreSQL host.

        Returns:
            PostgreSQL host, defaults to 'localhost'
        """
        return os.getenv("POSTGRES_HOST", "localhost")

    @staticmethod
    def postgres_port() -> int:
        """Get PostgreSQL port.

        Returns:
            PostgreSQL port, defaults to 5432
        """
        return int(os.getenv("POSTGRES_PORT", "5432"))

    @staticmethod
    def postgres_database() -> str:
        """Get PostgreSQL database name.

        Returns:
            Database name, defaults to 'git_cinematic'
        """
        return os.getenv("POSTGRES_DB", "git_cinematic")

    @staticmethod
    def postgres_user() -> str:
        """Get PostgreSQL user.

        Returns:
            Database user, defaults to 'git_cinematic'
        """
        return os.getenv("POSTGRES_USER", "git_cinematic")

    @staticmethod
    def postgres_password() -> str:
        """Get PostgreSQL password.

        Returns:
            Database password, defaults to empty string
        """
        return os.getenv("POSTGRES_PASSWORD", "")

    @staticmethod
    def postgres_pool_size() -> int:
        """Get PostgreSQL connection pool size.

        Returns:
            Pool size, defaults to 5
        """
        return int(os.getenv("POSTGRES_POOL_SIZE", "5"))

    @staticmethod
    def postgres_pool_max_overflow() -> int:
        """Get PostgreSQL connection pool max overflow.

        Returns:
            Max overflow, defaults to 10
        """
        return int(os.getenv("POSTGRES_POOL_MAX_OVERFLOW", "10"))


# Singleton instance for convenient access
env = Environment()
