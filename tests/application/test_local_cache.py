"""Tests for the LocalCache."""

import json
from unittest.mock import MagicMock

from gridsync.application.use_cases.local_cache import LocalCache, cache_key


def test_read_returns_none_before_first_write(storage) -> None:
    """An absent snapshot should read as None, not as an empty list."""
    cache = LocalCache(storage, logger=MagicMock())

    assert cache.read("customers") is None


def test_write_dedupes_ids_keeping_first(storage) -> None:
    """Duplicate ids should collapse to their first occurrence."""
    cache = LocalCache(storage, logger=MagicMock())

    stored = cache.write(
        "customers",
        [{"id": "a", "name": "first"}, {"id": "b"}, {"id": "a", "name": "dup"}],
    )

    assert stored == [{"id": "a", "name": "first"}, {"id": "b"}]
    assert json.loads(storage.get(cache_key("customers"))) == stored


def test_upsert_replaces_in_place_or_prepends(storage) -> None:
    """Known ids keep their position; new ids go first."""
    cache = LocalCache(storage, logger=MagicMock())
    cache.write("customers", [{"id": "a", "v": 1}, {"id": "b", "v": 1}])

    cache.upsert("customers", {"id": "b", "v": 2})
    snapshot = cache.upsert("customers", {"id": "c", "v": 1})

    assert [record["id"] for record in snapshot] == ["c", "a", "b"]
    assert snapshot[2]["v"] == 2


def test_remove_and_clear(storage) -> None:
    """remove should drop one record and clear the whole snapshot."""
    cache = LocalCache(storage, logger=MagicMock())
    cache.write("customers", [{"id": "a"}, {"id": "b"}])

    assert cache.remove("customers", "a") == [{"id": "b"}]

    cache.clear("customers")
    assert cache.read("customers") is None


def test_read_returns_independent_copies(storage) -> None:
    """Mutating a read result should not leak into the stored snapshot."""
    cache = LocalCache(storage, logger=MagicMock())
    cache.write("customers", [{"id": "a", "tags": ["x"]}])

    snapshot = cache.read("customers")
    snapshot[0]["tags"].append("y")

    assert cache.read("customers") == [{"id": "a", "tags": ["x"]}]


def test_two_caches_share_the_storage(storage) -> None:
    """A write from one context should be visible to another at once."""
    first = LocalCache(storage, logger=MagicMock())
    second = LocalCache(storage, logger=MagicMock())
    second.read("customers")

    first.write("customers", [{"id": "a"}])

    assert second.read("customers") == [{"id": "a"}]


def test_undecodable_value_is_discarded(storage) -> None:
    """Corrupted JSON should be logged and read as absent."""
    logger = MagicMock()
    storage.set(cache_key("customers"), "{not json")
    cache = LocalCache(storage, logger=logger)

    assert cache.read("customers") is None
    logger.warning.assert_called_once()


def test_storage_failure_degrades_to_memory(failing_storage) -> None:
    """Failed persistence should keep state in memory without raising."""
    logger = MagicMock()
    cache = LocalCache(failing_storage, logger=logger)

    cache.write("customers", [{"id": "a"}])

    assert cache.is_degraded is True
    assert cache.read("customers") == [{"id": "a"}]
    calls_after_degrade = failing_storage.calls
    cache.upsert("customers", {"id": "b"})
    assert failing_storage.calls == calls_after_degrade
    assert [record["id"] for record in cache.read("customers")] == ["b", "a"]
    logger.warning.assert_called_once()
