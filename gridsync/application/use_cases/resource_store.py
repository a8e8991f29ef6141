"""Generic store for plain synchronized collections."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from gridsync.application.ports.errors import RemoteError
from gridsync.application.ports.remote import SyncConfig
from gridsync.application.use_cases.broadcast_replicator import (
    BroadcastReplicator,
)
from gridsync.application.use_cases.sync_engine import (
    OFFLINE_REASON,
    SyncEngine,
)
from gridsync.domain.constants import SYNC_MODE_OFFLINE, SYNC_MODE_ONLINE
from gridsync.domain.models.sync import Record, SyncResult
from gridsync.domain.services.snapshots import (
    dedupe_records,
    patch_record,
    remove_record,
    upsert_record,
)
from gridsync.infrastructure.logging.logger import get_app_logger


Listener = Callable[["ResourceStore"], None]


class ResourceStore:
    """Records of one remote collection (customers, suppliers, products).

    Changes go through the sync engine; the records list is replaced, never
    mutated, so readers always see a complete snapshot.
    """

    def __init__(
        self,
        engine: SyncEngine,
        config: SyncConfig,
        replicator: BroadcastReplicator | None = None,
        logger=None,
    ) -> None:
        self._engine = engine
        self._config = config
        self._replicator = replicator
        self._logger = logger or get_app_logger()
        self._listeners: list[Listener] = []

        self.records: list[Record] = engine.snapshot(config.resource_key)
        self.error: str | None = None
        self.sync_mode = engine.mode()
        self.is_loading = False

        if replicator is not None:
            replicator.on_state_update(self.apply_remote_state)
            replicator.on_refresh_request(self.load)

    @property
    def resource_key(self) -> str:
        return self._config.resource_key

    def get(self, record_id: str) -> Record | None:
        record_id = self._engine.resolve_id(self.resource_key, record_id)
        for record in self.records:
            if record.get("id") == record_id:
                return dict(record)
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> list[Record]:
        self.error = None
        self.is_loading = True
        try:
            result = await self._engine.load(self._config, fallback=self.records)
        finally:
            self.is_loading = False
        self._track_mode(result)
        self._commit(result.data)
        return list(self.records)

    async def add(self, data: Mapping[str, Any]) -> Record:
        self.error = None
        result = await self._engine.create(self._config, dict(data))
        self._track_mode(result)
        self._commit(upsert_record(self._current(), result.data))
        return dict(result.data)

    async def update(
        self,
        record_id: str,
        updates: Mapping[str, Any],
    ) -> Record | None:
        """Patch a record; a rejected change leaves the records untouched."""
        self.error = None
        result = await self._engine.update(self._config, record_id, updates)
        self._track_mode(result)
        if result.is_degraded and result.reason != OFFLINE_REASON:
            self.error = f"Could not update {self.resource_key}: {result.reason}"
            self._logger.warning(self.error)
            self._restore()
            return None

        target_id = self._engine.resolve_id(self.resource_key, record_id)
        records, patched = patch_record(self._current(), target_id, updates)
        self._commit(records)
        return patched

    async def delete(self, record_id: str) -> bool:
        self.error = None
        try:
            result = await self._engine.delete(self._config, record_id)
        except RemoteError as exc:
            self.error = f"Could not delete from {self.resource_key}: {exc}"
            self._logger.warning(self.error)
            self._restore()
            return False
        self._track_mode(result)
        target_id = self._engine.resolve_id(self.resource_key, record_id)
        self._commit(remove_record(self._current(), target_id))
        return True

    def apply_remote_state(self, payload: Mapping[str, Any]) -> None:
        records = payload.get("records")
        if not isinstance(records, list):
            self._logger.warning(
                f"Ignoring {self.resource_key} broadcast without records"
            )
            return
        self.records = dedupe_records(records)
        self.sync_mode = payload.get("sync_mode") or self.sync_mode
        self._notify()

    def _current(self) -> list[Record]:
        """Records with temporary ids replaced by their server ids."""
        resolved = [
            {**record, "id": self._engine.resolve_id(self.resource_key, record["id"])}
            for record in self.records
        ]
        return dedupe_records(resolved)

    def _commit(self, records: list[Record]) -> None:
        self.records = self._engine.replace_snapshot(self.resource_key, records)
        self._notify()
        if self._replicator is not None:
            self._replicator.publish_state(
                {"records": list(self.records), "sync_mode": self.sync_mode}
            )

    def _restore(self) -> None:
        self._engine.replace_snapshot(self.resource_key, self.records)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _track_mode(self, result: SyncResult) -> None:
        self.sync_mode = SYNC_MODE_ONLINE if result.is_ok else SYNC_MODE_OFFLINE


__all__ = ["ResourceStore"]
