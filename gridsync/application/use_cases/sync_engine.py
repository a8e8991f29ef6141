"""Offline-first read and write paths shared by every domain store.

The engine pairs a :class:`LocalCache` with a :class:`MutationQueue`:

* reads go to the remote API when authenticated and fall back to the cached
  snapshot otherwise;
* writes are applied to the cache first, then sent remotely; writes that
  cannot reach the API are queued and replayed in order by :meth:`flush`
  at the start of the next authenticated call.

Engine failures never surface as exceptions except for remote deletes,
which are not retried silently. Every other operation returns a
:class:`SyncResult` saying whether the data is confirmed (``ok``) or the best
local data available (``degraded``).
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable, Mapping
from typing import Any, Awaitable, Callable

from gridsync.application.ports.auth import AuthGatePort
from gridsync.application.ports.errors import (
    MalformedResponseError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnavailableError,
    SyncConfigurationError,
)
from gridsync.application.ports.remote import Envelope, SyncConfig
from gridsync.application.use_cases.local_cache import LocalCache
from gridsync.application.use_cases.mutation_queue import MutationQueue
from gridsync.domain.constants import (
    OPERATION_CREATE,
    OPERATION_DELETE,
    OPERATION_UPDATE,
    SYNC_MODE_OFFLINE,
    SYNC_MODE_ONLINE,
    TEMP_ID_PREFIX,
)
from gridsync.domain.models.sync import (
    FlushReport,
    QueuedMutation,
    Record,
    SyncResult,
)
from gridsync.domain.services.snapshots import (
    merge_remote_with_cached,
    patch_record,
)
from gridsync.infrastructure.logging.logger import get_app_logger


OFFLINE_REASON = "offline"


def new_temp_id() -> str:
    """Return a fresh placeholder id for a record created locally."""
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


class SyncEngine:
    """Load/create/update/delete with cache fallback and queued replay."""

    def __init__(
        self,
        cache: LocalCache,
        queue: MutationQueue,
        auth_gate: AuthGatePort,
        logger=None,
        remote_timeout: float | None = None,
        id_factory: Callable[[], str] = new_temp_id,
    ) -> None:
        """Initialize the engine.

        Args:
            cache: Persisted record snapshots.
            queue: Persisted pending mutations.
            auth_gate: Gate consulted before every remote attempt.
            logger: Optional logger compatible with logging.Logger-like API.
            remote_timeout: Seconds before a remote call counts as
                unavailable. None waits indefinitely.
            id_factory: Generator of temporary record ids.
        """
        self._cache = cache
        self._queue = queue
        self._auth_gate = auth_gate
        self._logger = logger or get_app_logger()
        self._remote_timeout = remote_timeout
        self._id_factory = id_factory
        self._flushing: set[str] = set()
        self._aliases: dict[tuple[str, str], str] = {}

    @property
    def cache(self) -> LocalCache:
        return self._cache

    @property
    def queue(self) -> MutationQueue:
        return self._queue

    def is_online(self) -> bool:
        return self._auth_gate.is_authenticated()

    def mode(self) -> str:
        """Return ``online`` when remote calls will be attempted."""
        return SYNC_MODE_ONLINE if self.is_online() else SYNC_MODE_OFFLINE

    def snapshot(self, resource_key: str) -> list[Record]:
        """Return the cached records of a resource, empty when absent."""
        return self._cache.read(resource_key) or []

    def replace_snapshot(
        self,
        resource_key: str,
        records: Iterable[Mapping[str, Any]],
    ) -> list[Record]:
        """Overwrite a cached snapshot, e.g. to restore a saved state."""
        return self._cache.write(resource_key, records)

    def resolve_id(self, resource_key: str, record_id: str) -> str:
        """Map a temporary id to the server id it was replaced by, if any."""
        return self._aliases.get((resource_key, record_id), record_id)

    async def load(
        self,
        config: SyncConfig,
        fallback: Iterable[Mapping[str, Any]] | None = None,
    ) -> SyncResult[list[Record]]:
        """Return the freshest records available for a resource.

        Args:
            config: Sync configuration of the resource.
            fallback: Records returned when nothing is cached.

        Returns:
            SyncResult[list[Record]]: Merged remote records, or the cached
            snapshot (else ``fallback``) when the API cannot be used.
        """
        key = config.resource_key
        if not self.is_online():
            return SyncResult.degraded(
                self._local_or(key, fallback),
                OFFLINE_REASON,
            )

        await self.flush(config)
        try:
            response = await self._call(config.fetch_all)
            remote = self._extract_many(config, response)
        except RemoteError as exc:
            self._logger.warning(
                f"Loading {key} from the API failed ({exc}); "
                "using cached records"
            )
            return SyncResult.degraded(self._local_or(key, fallback), str(exc))

        merged = merge_remote_with_cached(remote, self._cache.read(key))
        stored = self._cache.write(key, merged)
        self._logger.info(f"Loaded {len(remote)} {key} from the API")
        return SyncResult.ok(stored)

    async def create(
        self,
        config: SyncConfig,
        record: Mapping[str, Any],
    ) -> SyncResult[Record]:
        """Create a record, queueing it when the API cannot take it now.

        The record is cached under its own id, or a generated temporary id,
        before any remote call.
        """
        handler = config.require(OPERATION_CREATE)
        key = config.resource_key
        local_id = str(record.get("id") or self._id_factory())
        placeholder = {**record, "id": local_id}
        self._cache.upsert(key, placeholder)

        if not self.is_online():
            self._enqueue_create(key, placeholder)
            return SyncResult.degraded(placeholder, OFFLINE_REASON)

        await self.flush(config)
        try:
            response = await self._call(handler, placeholder)
            created = self._extract_one(config, response)
        except RemoteError as exc:
            self._logger.warning(
                f"Creating {key} record {local_id} failed ({exc}); "
                "queued for replay"
            )
            self._enqueue_create(key, placeholder)
            return SyncResult.degraded(placeholder, str(exc))

        self._adopt_created(key, local_id, created)
        self._logger.info(f"Created {key} record {created['id']} via the API")
        return SyncResult.ok(created)

    async def update(
        self,
        config: SyncConfig,
        record_id: str,
        updates: Mapping[str, Any],
    ) -> SyncResult[Record | None]:
        """Patch a record locally, then remotely.

        A remote failure keeps the local patch and is reported as degraded;
        it is not queued. Callers decide whether to restore a saved state.
        """
        handler = config.require(OPERATION_UPDATE)
        key = config.resource_key
        patched = self._patch_cached(key, record_id, updates)

        if not self.is_online():
            self._queue.enqueue(
                key,
                OPERATION_UPDATE,
                {"id": record_id, "updates": dict(updates)},
            )
            return SyncResult.degraded(patched, OFFLINE_REASON)

        await self.flush(config)
        target_id = self.resolve_id(key, record_id)
        if target_id != record_id:
            patched = self._patch_cached(key, target_id, updates)
        try:
            await self._call(handler, target_id, dict(updates))
        except RemoteError as exc:
            self._logger.warning(
                f"Updating {key} record {target_id} failed ({exc})"
            )
            return SyncResult.degraded(patched, str(exc))

        self._logger.info(f"Updated {key} record {target_id} via the API")
        return SyncResult.ok(patched)

    async def delete(
        self,
        config: SyncConfig,
        record_id: str,
    ) -> SyncResult[None]:
        """Remove a record locally, then remotely.

        Raises:
            RemoteError: If the authenticated remote delete fails. Deletes
                are not retried behind the caller's back.
        """
        handler = config.require(OPERATION_DELETE)
        key = config.resource_key
        self._cache.remove(key, record_id)

        if not self.is_online():
            self._queue.enqueue(key, OPERATION_DELETE, {"id": record_id})
            return SyncResult.degraded(None, OFFLINE_REASON)

        await self.flush(config)
        target_id = self.resolve_id(key, record_id)
        if target_id != record_id:
            self._cache.remove(key, target_id)
        await self._call(handler, target_id)
        self._logger.info(f"Deleted {key} record {target_id} via the API")
        return SyncResult.ok(None)

    async def flush(self, config: SyncConfig) -> FlushReport:
        """Replay the queued mutations of one resource in enqueue order.

        A failing mutation stays queued and later mutations of the same
        record are skipped for this pass; unrelated mutations still run.
        """
        key = config.resource_key
        report = FlushReport(resource_key=key)
        if key in self._flushing:
            report.skipped = self._queue.pending_count(key)
            return report

        self._flushing.add(key)
        try:
            blocked: set[str] = set()
            for mutation in self._queue.drain(key):
                target = self.resolve_id(key, mutation.target_id or "")
                if target in blocked:
                    report.skipped += 1
                    continue
                report.attempted += 1
                try:
                    await self._replay(config, mutation)
                except (RemoteError, SyncConfigurationError) as exc:
                    report.failed += 1
                    report.errors.append(str(exc))
                    blocked.add(target)
                    self._logger.warning(
                        f"Replay of queued {mutation.operation} for {key} "
                        f"record {target} failed ({exc}); kept in queue"
                    )
                else:
                    report.succeeded += 1
        finally:
            self._flushing.discard(key)

        if report.attempted:
            self._logger.info(
                f"Flushed {report.succeeded}/{report.attempted} queued "
                f"mutations for {key}"
            )
        return report

    async def _replay(self, config: SyncConfig, mutation: QueuedMutation) -> None:
        key = config.resource_key
        if mutation.operation == OPERATION_CREATE:
            handler = config.require(OPERATION_CREATE)
            response = await self._call(handler, dict(mutation.payload))
            created = self._extract_one(config, response)
            local_id = mutation.temp_id or mutation.payload.get("id")
            self._adopt_created(key, local_id, created)
        elif mutation.operation == OPERATION_UPDATE:
            handler = config.require(OPERATION_UPDATE)
            record_id = self.resolve_id(key, str(mutation.payload.get("id")))
            updates = dict(mutation.payload.get("updates") or {})
            await self._call(handler, record_id, updates)
            self._patch_cached(key, record_id, updates)
        else:
            handler = config.require(OPERATION_DELETE)
            raw_id = mutation.payload.get("id") or mutation.temp_id
            record_id = self.resolve_id(key, str(raw_id))
            try:
                await self._call(handler, record_id)
            except RemoteNotFoundError:
                self._logger.info(
                    f"{key} record {record_id} was already deleted remotely"
                )
            self._cache.remove(key, record_id)
        self._queue.resolve(mutation.id)

    def _adopt_created(
        self,
        resource_key: str,
        local_id: str | None,
        created: Record,
    ) -> None:
        server_id = created["id"]
        if local_id and local_id != server_id:
            self._cache.remove(resource_key, local_id)
            self._aliases[(resource_key, local_id)] = server_id
            self._queue.remap_id(resource_key, local_id, server_id)
        self._cache.upsert(resource_key, created)

    def _enqueue_create(self, resource_key: str, placeholder: Record) -> None:
        self._queue.enqueue(
            resource_key,
            OPERATION_CREATE,
            placeholder,
            temp_id=placeholder["id"],
        )

    def _patch_cached(
        self,
        resource_key: str,
        record_id: str,
        updates: Mapping[str, Any],
    ) -> Record | None:
        snapshot, patched = patch_record(
            self._cache.read(resource_key) or [],
            record_id,
            updates,
        )
        if patched is not None:
            self._cache.write(resource_key, snapshot)
        return patched

    def _local_or(
        self,
        resource_key: str,
        fallback: Iterable[Mapping[str, Any]] | None,
    ) -> list[Record]:
        cached = self._cache.read(resource_key)
        if cached is not None:
            return cached
        return [dict(record) for record in fallback or []]

    async def _call(
        self,
        operation: Callable[..., Awaitable[Envelope]],
        *args: Any,
    ) -> Envelope:
        if self._remote_timeout is None:
            return await operation(*args)
        try:
            return await asyncio.wait_for(
                operation(*args),
                timeout=self._remote_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise RemoteUnavailableError(
                f"no answer within {self._remote_timeout}s"
            ) from exc

    @staticmethod
    def _extract_many(config: SyncConfig, response: Envelope) -> list[Record]:
        try:
            records = config.extract(response)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise MalformedResponseError(str(exc)) from exc
        if not isinstance(records, list):
            raise MalformedResponseError(
                f"extract returned {type(records).__name__}, not a list"
            )
        for record in records:
            if not isinstance(record, dict) or record.get("id") in (None, ""):
                raise MalformedResponseError("listed record has no id")
        return [{**record, "id": str(record["id"])} for record in records]

    @staticmethod
    def _extract_one(config: SyncConfig, response: Envelope) -> Record:
        try:
            record = config.extract_record(response)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise MalformedResponseError(str(exc)) from exc
        if not isinstance(record, dict) or not record.get("id"):
            raise MalformedResponseError("created record has no id")
        return {**record, "id": str(record["id"])}


__all__ = ["SyncEngine", "OFFLINE_REASON", "new_temp_id"]
