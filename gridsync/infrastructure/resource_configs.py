"""Sync configurations binding resource keys to their REST collections."""

from typing import Any, Callable

from gridsync.application.ports.remote import (
    Envelope,
    RemoteResourcePort,
    SyncConfig,
    extract_items,
    extract_record,
)
from gridsync.domain.constants import DEFAULT_ACCOUNT_TYPE, DEFAULT_CURRENCY
from gridsync.domain.models.sync import Record
from gridsync.utils.decimal_utils import coerce_decimal, to_json_number


ACCOUNTS = "accounts"

# Local field -> API field, for the writable account fields.
ACCOUNT_API_FIELDS = {
    "name": "name",
    "account_type": "type",
    "account_number": "accountNumber",
    "balance": "currentBalance",
    "currency": "currency",
    "active": "active",
}


def account_from_api(item: dict[str, Any]) -> Record:
    """Map an API account to the local account record."""
    return {
        "id": str(item["id"]),
        "name": item.get("name") or "",
        "account_number": item.get("accountNumber") or "",
        "bank_name": item.get("bankName") or "",
        "account_type": item.get("type") or DEFAULT_ACCOUNT_TYPE,
        "payment_method": item.get("paymentMethod"),
        "balance": to_json_number(coerce_decimal(item.get("currentBalance"))),
        "currency": item.get("currency") or DEFAULT_CURRENCY,
        "active": item.get("active") is not False,
        "created_date": item.get("createdAt") or "",
        "description": item.get("description") or "",
    }


def _api_value(field: str, value: Any) -> Any:
    if field == "balance":
        return float(coerce_decimal(value))
    return value


def account_to_api(record: Record) -> Record:
    """Build the API body creating an account."""
    return {
        "name": record.get("name") or "",
        "type": record.get("account_type") or DEFAULT_ACCOUNT_TYPE,
        "accountNumber": record.get("account_number") or None,
        "currentBalance": _api_value("balance", record.get("balance")),
        "currency": record.get("currency") or DEFAULT_CURRENCY,
        "active": record.get("active") is not False,
    }


def account_updates_to_api(updates: Record) -> Record:
    """Build the API body for a partial account update.

    Fields the API does not store (bank name, description...) are left out.
    """
    return {
        api_field: _api_value(field, updates[field])
        for field, api_field in ACCOUNT_API_FIELDS.items()
        if field in updates
    }


def extract_accounts(response: Envelope) -> list[Record]:
    return [account_from_api(item) for item in extract_items(response)]


def extract_account(response: Envelope) -> Record:
    return account_from_api(extract_record(response))


class MappedResource(RemoteResourcePort):
    """Resource translating local records to API bodies before sending."""

    def __init__(
        self,
        api,
        to_api: Callable[[Record], Record],
        updates_to_api: Callable[[Record], Record],
    ) -> None:
        self._api = api
        self._to_api = to_api
        self._updates_to_api = updates_to_api

    async def fetch_all(self) -> Envelope:
        return await self._api.fetch_all()

    async def create(self, body: Record) -> Envelope:
        return await self._api.create(
            self._to_api(body),
            idempotency_key=body.get("id"),
        )

    async def update(self, record_id: str, body: Record) -> Envelope:
        return await self._api.update(record_id, self._updates_to_api(body))

    async def delete(self, record_id: str) -> Envelope:
        return await self._api.delete(record_id)


def build_sync_config(resource_key: str, api: RemoteResourcePort) -> SyncConfig:
    """Return the sync config of ``resource_key`` served by ``api``.

    Accounts are translated between the local and API field names; other
    collections are exchanged as-is.
    """
    if resource_key == ACCOUNTS:
        return SyncConfig.from_resource(
            resource_key,
            MappedResource(api, account_to_api, account_updates_to_api),
            extract=extract_accounts,
            extract_one=extract_account,
        )
    return SyncConfig.from_resource(resource_key, api)


__all__ = [
    "ACCOUNTS",
    "account_from_api",
    "account_to_api",
    "account_updates_to_api",
    "extract_accounts",
    "extract_account",
    "MappedResource",
    "build_sync_config",
]
