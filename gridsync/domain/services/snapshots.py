"""Pure helpers over cache snapshots (lists of records keyed by ``id``)."""

from collections.abc import Iterable, Mapping
from typing import Any

from gridsync.domain.models.sync import Record


def dedupe_records(records: Iterable[Mapping[str, Any]]) -> list[Record]:
    """Drop records whose id was already seen, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[Record] = []
    for record in records:
        record_id = record.get("id")
        if record_id in seen:
            continue
        seen.add(record_id)
        unique.append(dict(record))
    return unique


def upsert_record(
    records: Iterable[Mapping[str, Any]],
    record: Mapping[str, Any],
) -> list[Record]:
    """Replace the record sharing ``id`` in place, otherwise prepend it."""
    updated: list[Record] = []
    replaced = False
    for existing in records:
        if existing.get("id") == record.get("id"):
            if not replaced:
                updated.append(dict(record))
                replaced = True
            continue
        updated.append(dict(existing))
    if not replaced:
        updated.insert(0, dict(record))
    return updated


def remove_record(
    records: Iterable[Mapping[str, Any]],
    record_id: str,
) -> list[Record]:
    return [dict(record) for record in records if record.get("id") != record_id]


def patch_record(
    records: Iterable[Mapping[str, Any]],
    record_id: str,
    updates: Mapping[str, Any],
) -> tuple[list[Record], Record | None]:
    """Merge ``updates`` into the record with ``record_id``.

    Returns:
        tuple: The patched snapshot and the patched record, or ``None`` when
        no record carries ``record_id``.
    """
    patched: Record | None = None
    updated: list[Record] = []
    for record in records:
        if record.get("id") == record_id:
            patched = {**record, **updates, "id": record_id}
            updated.append(patched)
        else:
            updated.append(dict(record))
    return updated, patched


def merge_remote_with_cached(
    remote: Iterable[Mapping[str, Any]],
    cached: Iterable[Mapping[str, Any]] | None,
) -> list[Record]:
    """Combine a remote listing with the local snapshot.

    Cached records missing from the remote listing are treated as created
    offline and not yet visible remotely: they are kept, ahead of the remote
    records, in their cached order.
    """
    remote_records = dedupe_records(remote)
    remote_ids = {record.get("id") for record in remote_records}
    offline_only = [
        dict(record)
        for record in cached or []
        if record.get("id") not in remote_ids
    ]
    return dedupe_records([*offline_only, *remote_records])


__all__ = [
    "dedupe_records",
    "upsert_record",
    "remove_record",
    "patch_record",
    "merge_remote_with_cached",
]
