"""Tests for the composition root."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from gridsync.application.use_cases.ledger_store import LedgerStore
from gridsync.application.use_cases.local_cache import LocalCache
from gridsync.application.use_cases.resource_store import ResourceStore
from gridsync.infrastructure import container as container_module
from gridsync.infrastructure.auth import StoredTokenSource
from gridsync.infrastructure.broadcast import (
    InProcessBroadcastHub,
    StorageBroadcastChannel,
)
from gridsync.infrastructure.kv_storage import InMemoryKeyValueStorage
from gridsync.infrastructure.settings import SyncSettings


@pytest.fixture(autouse=True)
def silent_logger(monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(container_module, "get_app_logger", lambda: logger)
    return logger


def _settings(**overrides):
    values = {
        "api_url": "http://api.test/api",
        "storage_url": "sqlite://",
        "api_token": "token",
        "resources": ("accounts", "customers"),
    }
    values.update(overrides)
    return SyncSettings(**values)


def test_build_application_wires_one_store_per_resource() -> None:
    """Accounts get the ledger store; other resources a generic store."""
    app = container_module.build_application(
        _settings(),
        storage=InMemoryKeyValueStorage(),
        session=MagicMock(),
    )

    assert isinstance(app.ledger, LedgerStore)
    assert set(app.stores) == {"customers"}
    assert isinstance(app.stores["customers"], ResourceStore)
    assert len(app.channels) == len(app.replicators) == 2
    assert app.auth_gate.is_authenticated() is True


def test_sibling_contexts_share_the_hub() -> None:
    """Two contexts on one hub should see each other's ledger changes."""
    hub = InProcessBroadcastHub()
    storage = InMemoryKeyValueStorage()
    LocalCache(storage, logger=MagicMock()).write(
        "accounts",
        [{"id": "a1", "name": "Cash", "balance": "10"}],
    )
    first, second = (
        container_module.build_application(
            _settings(),
            storage=storage,
            hub=hub,
            session=MagicMock(),
        )
        for _ in range(2)
    )

    first.ledger.add_transaction(
        {"account_id": "a1", "type": "income", "amount": "5"}
    )

    assert hub.subscriber_count("accounts") == 2
    assert second.ledger.get_account("a1").balance == Decimal("15")


def test_stored_auth_state_is_used_without_api_token() -> None:
    """Without a configured token the shared auth document decides."""
    storage = InMemoryKeyValueStorage()
    gate = container_module.build_auth_gate(_settings(api_token=None), storage)

    assert gate.is_authenticated() is False
    StoredTokenSource(storage, logger=MagicMock()).save("abc")
    assert gate.is_authenticated() is True


def test_storage_broadcast_selects_polling_channel() -> None:
    """The storage transport should be used when configured."""
    channel = container_module.build_broadcast_channel(
        _settings(broadcast="storage", poll_interval=0.5),
        InMemoryKeyValueStorage(),
        "customers",
    )

    assert isinstance(channel, StorageBroadcastChannel)


def test_sync_configs_share_session_and_settings() -> None:
    """Every resource API should use the configured URL and tenant."""
    session = MagicMock()
    settings = _settings(tenant_slug="acme", request_timeout=4.0)
    gate = container_module.build_auth_gate(settings, InMemoryKeyValueStorage())

    configs = container_module.build_sync_configs(settings, gate, session=session)

    assert list(configs) == ["accounts", "customers"]
    assert configs["customers"].fetch_all.__self__.url == (
        "http://api.test/api/customers"
    )


@pytest.mark.asyncio
async def test_flush_all_replays_every_resource() -> None:
    """flush_all should report on every configured resource."""
    session = MagicMock()
    response = MagicMock(status_code=204, content=b"")
    session.request.return_value = response
    storage = InMemoryKeyValueStorage()
    app = container_module.build_application(
        _settings(),
        storage=storage,
        session=session,
    )
    app.engine.queue.enqueue("customers", "delete", {"id": "c1"})

    reports = await app.flush_all()
    await app.aclose()

    assert [report.resource_key for report in reports] == ["accounts", "customers"]
    assert reports[1].succeeded == 1
    assert app.engine.queue.pending_count() == 0
    session.request.assert_called_once()
