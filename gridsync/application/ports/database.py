"""Database port for the sync storage.

Infrastructure implementations provide the SQLAlchemy engine holding the
persisted cache, queue and broadcast keys.
"""

from typing import Protocol

from sqlalchemy.engine import Engine


class DatabaseEnginePort(Protocol):
    """Port exposing the storage database engine."""

    def get_storage_engine(self) -> Engine:
        """Get the engine for the sync storage database.

        Returns:
            Engine: SQLAlchemy engine connected to the storage database.
        """


__all__ = ["DatabaseEnginePort"]
