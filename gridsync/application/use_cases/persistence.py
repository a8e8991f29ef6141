"""JSON documents persisted through the key/value storage port."""

import json
from typing import Any

from gridsync.application.ports.errors import StorageUnavailableError
from gridsync.application.ports.storage import KeyValueStoragePort
from gridsync.infrastructure.logging.logger import get_app_logger


class PersistedDocuments:
    """JSON documents stored through a key/value storage port.

    Storage is shared by every execution context, so reads always go to the
    storage. A copy of each document is also kept in memory: after the first
    storage failure the instance switches to that copy for the rest of the
    session. Failures are logged, never raised.
    """

    def __init__(self, storage: KeyValueStoragePort, logger=None) -> None:
        """Initialize the documents.

        Args:
            storage: Persisted key/value storage.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._storage = storage
        self._logger = logger or get_app_logger()
        self._memory: dict[str, Any] = {}
        self._degraded = False

    @property
    def is_degraded(self) -> bool:
        """True once persistence failed and state is memory-only."""
        return self._degraded

    def _load(self, key: str) -> Any:
        if not self._degraded:
            try:
                raw = self._storage.get(key)
            except StorageUnavailableError as exc:
                self._degrade(f"read of {key}", exc)
            else:
                return self._decode(key, raw)
        return self._memory.get(key)

    def _decode(self, key: str, raw: str | None) -> Any:
        if raw is None:
            self._memory.pop(key, None)
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            self._logger.warning(
                f"Discarding undecodable persisted value for {key}"
            )
            return None
        self._memory[key] = value
        return value

    def _save(self, key: str, value: Any) -> None:
        self._memory[key] = value
        if self._degraded:
            return
        try:
            self._storage.set(key, json.dumps(value, default=str))
        except StorageUnavailableError as exc:
            self._degrade(f"write of {key}", exc)

    def _forget(self, key: str) -> None:
        self._memory.pop(key, None)
        if self._degraded:
            return
        try:
            self._storage.delete(key)
        except StorageUnavailableError as exc:
            self._degrade(f"delete of {key}", exc)

    def _degrade(self, action: str, exc: Exception) -> None:
        self._degraded = True
        self._logger.warning(
            f"Storage {action} failed ({exc}); "
            "continuing with in-memory state for this session"
        )


__all__ = ["PersistedDocuments"]
