"""Tests for replaying queued mutations."""

import pytest

from gridsync.application.ports.errors import RemoteUnavailableError
from gridsync.application.ports.remote import SyncConfig


async def _queue_offline_work(engine, config, auth_gate):
    auth_gate.authenticated = False
    first = await engine.create(config, {"name": "Ana"})
    await engine.update(config, first.data["id"], {"name": "Ann"})
    second = await engine.create(config, {"name": "Bob"})
    auth_gate.authenticated = True
    return first.data["id"], second.data["id"]


@pytest.mark.asyncio
async def test_flush_replays_in_order_and_remaps_ids(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """Creates should land first and later updates follow the server id."""
    first_id, second_id = await _queue_offline_work(engine, config, auth_gate)

    report = await engine.flush(config)

    assert (report.attempted, report.succeeded, report.failed) == (3, 3, 0)
    assert remote.operations() == ["create", "update", "create"]
    assert remote.calls[1][1] == "srv-1"
    assert remote.records["srv-1"]["name"] == "Ann"
    assert engine.queue.pending_count() == 0
    cached_ids = {record["id"] for record in engine.cache.read("customers")}
    assert cached_ids == {"srv-1", "srv-2"}
    assert engine.resolve_id("customers", first_id) == "srv-1"
    assert engine.resolve_id("customers", second_id) == "srv-2"


@pytest.mark.asyncio
async def test_flush_sends_local_id_for_idempotency(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """A create already applied remotely should not be duplicated."""
    auth_gate.authenticated = False
    created = await engine.create(config, {"name": "Ana"})
    auth_gate.authenticated = True
    # The server applied the create but the answer never arrived.
    await remote.create(dict(created.data))

    await engine.flush(config)

    assert list(remote.records) == ["srv-1"]
    assert engine.cache.read("customers") == [{"name": "Ana", "id": "srv-1"}]


@pytest.mark.asyncio
async def test_flush_is_idempotent(engine, config, remote, auth_gate) -> None:
    """A second flush after success should not call the API again."""
    await _queue_offline_work(engine, config, auth_gate)
    await engine.flush(config)
    calls_after_first = len(remote.calls)

    report = await engine.flush(config)

    assert report.attempted == 0
    assert len(remote.calls) == calls_after_first


@pytest.mark.asyncio
async def test_failed_mutation_stays_queued_and_others_continue(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """One failing record should not block unrelated records."""
    await _queue_offline_work(engine, config, auth_gate)
    remote.fail_ops["update"] = RemoteUnavailableError("flaky")

    report = await engine.flush(config)

    assert (report.succeeded, report.failed, report.skipped) == (2, 1, 0)
    assert report.errors == ["flaky"]
    [remaining] = engine.queue.drain("customers")
    assert remaining.operation == "update"
    assert remaining.target_id == "srv-1"


@pytest.mark.asyncio
async def test_later_mutations_of_a_failed_record_are_skipped(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """An update must never be replayed before its record's create."""
    first_id, _ = await _queue_offline_work(engine, config, auth_gate)
    original_create = remote.create

    async def create_failing_for_ana(body):
        if body.get("name") == "Ana":
            remote.calls.append(("create", dict(body)))
            raise RemoteUnavailableError("down")
        return await original_create(body)

    remote.create = create_failing_for_ana
    patched_config = SyncConfig.from_resource("customers", remote)

    report = await engine.flush(patched_config)

    assert (report.succeeded, report.failed, report.skipped) == (1, 1, 1)
    assert report.pending == 2
    assert "update" not in remote.operations()
    remaining = engine.queue.drain("customers")
    assert [m.operation for m in remaining] == ["create", "update"]
    assert all(m.target_id == first_id for m in remaining)


@pytest.mark.asyncio
async def test_replayed_delete_of_missing_record_succeeds(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """A record already gone remotely counts as deleted."""
    engine.cache.write("customers", [{"id": "c1"}])
    auth_gate.authenticated = False
    await engine.delete(config, "c1")
    auth_gate.authenticated = True

    report = await engine.flush(config)

    assert report.succeeded == 1
    assert engine.queue.pending_count() == 0


@pytest.mark.asyncio
async def test_flush_only_touches_its_resource(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """Mutations of other resources stay queued."""
    engine.queue.enqueue("products", "delete", {"id": "p1"})

    report = await engine.flush(config)

    assert report.attempted == 0
    assert engine.queue.pending_count("products") == 1


@pytest.mark.asyncio
async def test_authenticated_load_flushes_before_fetching(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """Reads after reconnecting should include the replayed writes."""
    await _queue_offline_work(engine, config, auth_gate)

    result = await engine.load(config)

    assert remote.operations()[-1] == "fetch_all"
    assert sorted(record["id"] for record in result.data) == ["srv-1", "srv-2"]


@pytest.mark.asyncio
async def test_update_of_temp_id_after_reconnect_targets_server_id(
    engine,
    config,
    remote,
    auth_gate,
) -> None:
    """Callers holding a temporary id should still reach the right record."""
    auth_gate.authenticated = False
    created = await engine.create(config, {"name": "Ana"})
    auth_gate.authenticated = True

    result = await engine.update(config, created.data["id"], {"name": "Ann"})

    assert result.is_ok
    assert result.data == {"name": "Ann", "id": "srv-1"}
    assert remote.records["srv-1"]["name"] == "Ann"
    assert engine.cache.read("customers") == [{"name": "Ann", "id": "srv-1"}]
