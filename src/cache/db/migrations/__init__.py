"""Schema migrations for the repository cache database."""

from .runner import MigrationRunner

__all__ = ["MigrationRunner"]
