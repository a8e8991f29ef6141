"""Database infrastructure for the sync storage.

This module exposes concrete helpers to create and reuse the SQLAlchemy
engine holding the persisted cache, queue and broadcast keys. It belongs to
the infrastructure layer because it deals with an external system (SQLite by
default, any SQLAlchemy backend otherwise).
"""

import os
from pathlib import Path
from typing import Optional

import dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import QueuePool

from gridsync.application.ports.database import DatabaseEnginePort
from gridsync.infrastructure.settings import default_storage_url


def _get_env_var(name: str, default: Optional[str] = None) -> str:
    """Read an environment variable after loading ``.env``.

    Args:
        name: Name of the environment variable to read.
        default: Value returned when the variable is missing or empty.

    Returns:
        str: The raw value of the environment variable, or ``default``.

    Raises:
        RuntimeError: If the variable is missing and no default is given.
    """
    dotenv.load_dotenv()
    value = os.getenv(name)
    if value:
        return value
    if default is not None:
        return default
    raise RuntimeError(f"Missing environment variable: {name}")


def _create_engine(db_url: str) -> Engine:
    """Create a configured SQLAlchemy engine for the storage database.

    Args:
        db_url: Fully qualified database URL.

    Returns:
        Engine: A SQLAlchemy engine. Server databases get a small connection
        pool; SQLite files get their parent directory created.
    """
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(db_url, pool_pre_ping=True, future=True)
    return create_engine(
        db_url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
        future=True,
    )


_storage_engine: Optional[Engine] = None


def get_storage_engine() -> Engine:
    """Get a singleton SQLAlchemy engine for the sync storage.

    Returns:
        Engine: Lazily initialized engine for ``GRIDSYNC_STORAGE_URL``.
    """
    global _storage_engine
    if _storage_engine is None:
        db_url = _get_env_var("GRIDSYNC_STORAGE_URL", default_storage_url())
        _storage_engine = _create_engine(db_url)
    return _storage_engine


class SqlAlchemyDatabaseEngineAdapter(DatabaseEnginePort):
    """DatabaseEnginePort implementation backed by SQLAlchemy engines.

    The adapter hides configuration details (environment variables, pooling)
    behind the port. An explicit URL bypasses the shared singleton.
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        self._db_url = db_url
        self._engine: Optional[Engine] = None

    def get_storage_engine(self) -> Engine:
        """Get the engine for the sync storage database.

        Returns:
            Engine: SQLAlchemy engine connected to the storage database.
        """
        if self._db_url is None:
            return get_storage_engine()
        if self._engine is None:
            self._engine = _create_engine(self._db_url)
        return self._engine


__all__ = [
    "get_storage_engine",
    "SqlAlchemyDatabaseEngineAdapter",
]
