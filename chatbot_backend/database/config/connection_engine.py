"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds a SQLAlchemy connection URL from environment-backed settings.
- Owns the Engine (connection pool + SQL execution entry point) and the
  session factory bound to it.
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- Uses `URL.create(...)` to avoid hardcoding credentials and to keep configuration
  environment-driven (e.g., via `.env`, container secrets, or deployment vars).
- The engine is not created at import time. The application lifespan opens a
  `ConnectionEngine` at startup, hands it to the services that need it, and
  disposes it at shutdown.
- All ORM models must inherit from `declarativeBase` to participate in schema reflection
  and enable ORM features.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.schema import MetaData

from chatbot_backend.database.config.config import Settings

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------
# Metadata object: stores schema-level information about tables,
# constraints, indexes, etc. Shared across all models.
# --------------------------------------------------------------------
metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""
# --------------------------------------------------------------------
# Declarative Base: root class for ORM models.
# --------------------------------------------------------------------
declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models.
All model classes should inherit from this to gain ORM features and automatic schema generation.
 """


def build_connection_url(settings: Settings) -> URL:
    """
    Construct the SQLAlchemy connection URL using values from Settings.

    For SQLite drivers only the database name (file path) is used.
    """
    if settings.DB_DRIVER_NAME.startswith("sqlite"):
        return URL.create(drivername=settings.DB_DRIVER_NAME, database=settings.DB_DATABASE_NAME)
    return URL.create(
        drivername=settings.DB_DRIVER_NAME,   # e.g., "postgresql+psycopg2"
        username=settings.DB_USERNAME,        # Database username
        password=settings.DB_PASSWORD,        # Database password
        host=settings.DB_HOST,                # Hostname or IP of the DB server
        database=settings.DB_DATABASE_NAME    # Name of the database
    )


class ConnectionEngine:
    """
    Explicitly owned database connection pool.

    Parameters
    ----------
    url : str | URL
        SQLAlchemy connection URL.
    **engine_kwargs
        Forwarded to `create_engine` (pool class, connect args, echo, ...).

    Lifecycle
    ---------
    - `open()` creates the Engine and the session factory.
    - `create_tables()` issues `CREATE TABLE IF NOT EXISTS` for all entities.
    - `close()` disposes the pool; the object may be reopened afterwards.
    """

    def __init__(self, url, **engine_kwargs):
        self.url = url
        self.engine_kwargs = engine_kwargs
        self.engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **engine_kwargs) -> "ConnectionEngine":
        """Build a (not yet opened) engine from application settings."""
        return cls(build_connection_url(settings), **engine_kwargs)

    def open(self) -> "ConnectionEngine":
        if self.engine is None:
            self.engine = create_engine(self.url, **self.engine_kwargs)
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
            logger.info("Database engine opened (%s)", self.engine.url.drivername)
        return self

    def create_tables(self) -> None:
        # Entities register themselves on `metadata` when imported
        import chatbot_backend.database.entities.conversations  # noqa: F401

        metadata.create_all(self._require_engine())

    def new_session(self) -> Session:
        """Return a new Session bound to this engine."""
        self._require_engine()
        return self._session_factory()

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self._session_factory = None

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("ConnectionEngine is not open. Call open() first.")
        return self.engine
