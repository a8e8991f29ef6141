"""Tests for the account mapping and sync configs."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from gridsync.application.ports.errors import MalformedResponseError
from gridsync.domain.models.ledger import Account
from gridsync.infrastructure.resource_configs import (
    account_from_api,
    account_to_api,
    account_updates_to_api,
    build_sync_config,
)


def test_account_from_api_maps_fields_and_defaults() -> None:
    """API accounts should become readable local records."""
    record = account_from_api(
        {
            "id": 7,
            "name": "Bank",
            "accountNumber": "001-2",
            "type": "CASH",
            "currentBalance": 150.5,
            "active": None,
        }
    )

    account = Account.from_record(record)
    assert account.id == "7"
    assert account.account_number == "001-2"
    assert account.account_type == "CASH"
    assert account.balance == Decimal("150.5")
    assert account.currency == "ARS"
    assert account.active is True


def test_account_to_api_sends_numeric_balance() -> None:
    """Create bodies should use API field names and a numeric balance."""
    body = account_to_api({"id": "local-1", "name": "Wallet", "balance": "10.25"})

    assert body == {
        "name": "Wallet",
        "type": "BANK",
        "accountNumber": None,
        "currentBalance": 10.25,
        "currency": "ARS",
        "active": True,
    }


def test_account_updates_only_send_stored_fields() -> None:
    """Local-only fields should not reach the API."""
    body = account_updates_to_api(
        {"name": "Main", "description": "local note", "active": False}
    )

    assert body == {"name": "Main", "active": False}


@pytest.mark.asyncio
async def test_accounts_config_translates_both_ways() -> None:
    """The accounts config should map bodies out and envelopes in."""
    api = AsyncMock()
    api.create.return_value = {"data": {"id": "srv-1", "name": "Wallet"}}
    api.fetch_all.return_value = {"data": {"data": [{"id": 1, "name": "Cash"}]}}
    config = build_sync_config("accounts", api)

    envelope = await config.create({"id": "local-1", "name": "Wallet"})
    created = config.extract_record(envelope)
    listed = config.extract(await config.fetch_all())

    api.create.assert_awaited_once()
    assert api.create.await_args.kwargs == {"idempotency_key": "local-1"}
    assert created["id"] == "srv-1"
    assert created["account_type"] == "BANK"
    assert [record["id"] for record in listed] == ["1"]


@pytest.mark.asyncio
async def test_other_resources_are_exchanged_as_is() -> None:
    """Collections without a mapping should pass records through."""
    api = AsyncMock()
    api.fetch_all.return_value = {"data": {"items": [{"id": "p1", "sku": "X"}]}}
    config = build_sync_config("products", api)

    assert config.extract(await config.fetch_all()) == [{"id": "p1", "sku": "X"}]
    with pytest.raises(MalformedResponseError):
        config.extract({"data": "nope"})
    with pytest.raises(MalformedResponseError):
        config.extract({"data": [{"id": "p1"}, {"sku": "Y"}]})
