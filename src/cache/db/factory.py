"""Database factory for creating cache database adapters."""

from dataclasses import dataclass
from pathlib import Path

from .interface import DatabaseAdapter
from .sqlite_adapter import SQLiteAdapter
from .types import DatabaseType


@dataclass
class DatabaseConfig:
    """Database configuration container.

    Attributes:
        db_type: Type of database ('sqlite' or 'postgresql')
        db_path: SQLite database file, or ":memory:" (SQLite only)
        host: PostgreSQL host (PostgreSQL only)
        port: PostgreSQL port (PostgreSQL only)
        database: PostgreSQL database name (PostgreSQL only)
        user: PostgreSQL username (PostgreSQL only)
        password: PostgreSQL password (PostgreSQL only)
    """

    db_type: DatabaseType | str
    db_path: Path | str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    pool_size: int = 5
    pool_max_overflow: int = 10

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.db_type = DatabaseType.parse(self.db_type)

        if self.db_type == DatabaseType.SQLITE:
            if self.db_path is None:
                raise ValueError("db_path is required for SQLite")
            if self.db_path != ":memory:":
                self.db_path = Path(self.db_path)

        elif self.db_type == DatabaseType.POSTGRESQL:
            if not all([self.host, self.database, self.user]):
                raise ValueError("host, database, and user are required for PostgreSQL")
            if self.port is None:
                self.port = 5432


def create_database(config: DatabaseConfig) -> DatabaseAdapter:
    """Create the adapter for a configuration (not yet connected).

    Example:
        >>> config = DatabaseConfig(db_type="sqlite", db_path="./data/git_cinematic.db")
        >>> adapter = create_database(config)
    """
    if config.db_type == DatabaseType.SQLITE:
        return SQLiteAdapter(config.db_path)

    # Import here to avoid requiring psycopg when not using PostgreSQL
    from .postgres_adapter import PostgreSQLAdapter

    return PostgreSQLAdapter(
        host=config.host,
        port=config.port,
        database=config.database,
        user=config.user,
        password=config.password or "",
        pool_size=config.pool_size,
        pool_max_overflow=config.pool_max_overflow,
    )


def config_from_env() -> DatabaseConfig:
    """Build a database configuration from DATABASE_TYPE and related variables."""
    from common.env import env

    if DatabaseType.parse(env.database_type()) == DatabaseType.POSTGRESQL:
        return DatabaseConfig(
            db_type="postgresql",
            host=env.postgres_host(),
            port=env.postgres_port(),
            database=env.postgres_database(),
            user=env.postgres_user(),
            password=env.postgres_password(),
            pool_size=env.postgres_pool_size(),
            pool_max_overflow=env.postgres_pool_max_overflow(),
        )
    return DatabaseConfig(db_type="sqlite", db_path=env.database_path())


def get_adapter() -> DatabaseAdapter:
    """Get a database adapter configured from the environment."""
    return create_database(config_from_env())
