"""Persisted per-resource snapshots of domain records."""

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from gridsync.application.use_cases.persistence import PersistedDocuments
from gridsync.domain.models.sync import Record
from gridsync.domain.services.snapshots import (
    dedupe_records,
    remove_record,
    upsert_record,
)


CACHE_KEY_PREFIX = "sync-cache:"


def cache_key(resource_key: str) -> str:
    """Return the storage key of a resource snapshot."""
    return f"{CACHE_KEY_PREFIX}{resource_key}"


class LocalCache(PersistedDocuments):
    """Ordered, id-unique record snapshots keyed by resource.

    Pure storage: the cache knows nothing about the network. An absent
    snapshot (first run) reads as ``None``.
    """

    def read(self, resource_key: str) -> list[Record] | None:
        """Return a copy of the snapshot, or None if none was ever written."""
        snapshot = self._load(cache_key(resource_key))
        if not isinstance(snapshot, list):
            return None
        return copy.deepcopy(snapshot)

    def write(
        self,
        resource_key: str,
        records: Iterable[Mapping[str, Any]],
    ) -> list[Record]:
        """Replace the snapshot, dropping duplicate ids.

        Returns:
            list[Record]: The snapshot as stored.
        """
        snapshot = dedupe_records(copy.deepcopy(list(records)))
        self._save(cache_key(resource_key), snapshot)
        return copy.deepcopy(snapshot)

    def upsert(
        self,
        resource_key: str,
        record: Mapping[str, Any],
    ) -> list[Record]:
        """Replace the record sharing ``id`` or prepend it."""
        current = self.read(resource_key) or []
        return self.write(
            resource_key,
            upsert_record(current, copy.deepcopy(dict(record))),
        )

    def remove(self, resource_key: str, record_id: str) -> list[Record]:
        current = self.read(resource_key) or []
        return self.write(resource_key, remove_record(current, record_id))

    def clear(self, resource_key: str) -> None:
        self._forget(cache_key(resource_key))


__all__ = ["LocalCache", "cache_key", "CACHE_KEY_PREFIX"]
