"""Shared types and exceptions for the cache database layer."""

from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"

    @classmethod
    def parse(cls, value: "DatabaseType | str") -> "DatabaseType":
        """Coerce a case-insensitive name to a DatabaseType.

        Raises:
            ValueError: If the name is not a supported backend
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ValueError(
                f"Unsupported database type: {value}. "
                f"Must be one of: {', '.join(t.value for t in cls)}"
            ) from e


class DatabaseError(Exception):
    """Base exception for database operations."""


class ConnectionError(DatabaseError):
    """Error connecting to database."""


class IntegrityError(DatabaseError):
    """Database integrity constraint violation."""


class SchemaError(DatabaseError):
    """Error creating or migrating the schema."""


# A result row keyed by column name
Row = dict[str, Any]
