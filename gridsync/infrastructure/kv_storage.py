"""Key/value storage adapters for cache, queue and broadcast documents."""

from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from gridsync.application.ports.database import DatabaseEnginePort
from gridsync.application.ports.errors import StorageUnavailableError
from gridsync.application.ports.storage import KeyValueStoragePort
from gridsync.infrastructure.logging.logger import get_app_logger


CREATE_STORAGE_SQL = """
CREATE TABLE IF NOT EXISTS sync_storage (
    storage_key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

SELECT_VALUE_SQL = text(
    """
    SELECT payload
    FROM sync_storage
    WHERE storage_key = :storage_key
    """
)

DELETE_VALUE_SQL = text(
    """
    DELETE FROM sync_storage
    WHERE storage_key = :storage_key
    """
)

INSERT_VALUE_SQL = text(
    """
    INSERT INTO sync_storage (storage_key, payload, updated_at)
    VALUES (:storage_key, :payload, :updated_at)
    """
)


class SqlAlchemyKeyValueStorage(KeyValueStoragePort):
    """Key/value storage backed by the ``sync_storage`` table."""

    def __init__(self, db_port: DatabaseEnginePort, logger=None) -> None:
        """Initialize the storage adapter.

        Args:
            db_port: Port providing access to the storage engine.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._db_port = db_port
        self._logger = logger or get_app_logger()
        self._prepared = False

    def prepare(self) -> None:
        """Ensure the storage table exists.

        Raises:
            StorageUnavailableError: If the database cannot be reached.
        """
        try:
            engine = self._db_port.get_storage_engine()
            with engine.begin() as conn:
                conn.exec_driver_sql(CREATE_STORAGE_SQL)
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(
                f"Cannot prepare sync storage: {exc}"
            ) from exc
        self._prepared = True

    def get(self, key: str) -> str | None:
        self._ensure_prepared()
        try:
            engine = self._db_port.get_storage_engine()
            with engine.connect() as conn:
                row = conn.execute(
                    SELECT_VALUE_SQL,
                    {"storage_key": key},
                ).first()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(f"Cannot read {key}: {exc}") from exc
        return row.payload if row is not None else None

    def set(self, key: str, value: str) -> None:
        self._ensure_prepared()
        params = {
            "storage_key": key,
            "payload": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            engine = self._db_port.get_storage_engine()
            with engine.begin() as conn:
                conn.execute(DELETE_VALUE_SQL, {"storage_key": key})
                conn.execute(INSERT_VALUE_SQL, params)
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(f"Cannot write {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        self._ensure_prepared()
        try:
            engine = self._db_port.get_storage_engine()
            with engine.begin() as conn:
                conn.execute(DELETE_VALUE_SQL, {"storage_key": key})
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(f"Cannot delete {key}: {exc}") from exc

    def _ensure_prepared(self) -> None:
        if not self._prepared:
            self.prepare()
            self._logger.debug("Sync storage table ready")


class InMemoryKeyValueStorage(KeyValueStoragePort):
    """Process-local storage for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)


__all__ = [
    "SqlAlchemyKeyValueStorage",
    "InMemoryKeyValueStorage",
    "CREATE_STORAGE_SQL",
    "SELECT_VALUE_SQL",
    "DELETE_VALUE_SQL",
    "INSERT_VALUE_SQL",
]
