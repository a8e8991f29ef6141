"""Remote operation contract and per-resource sync configuration."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from gridsync.application.ports.errors import (
    MalformedResponseError,
    SyncConfigurationError,
)
from gridsync.domain.models.sync import Record


Envelope = Any
FetchAll = Callable[[], Awaitable[Envelope]]
CreateRemote = Callable[[Record], Awaitable[Envelope]]
UpdateRemote = Callable[[str, Record], Awaitable[Envelope]]
DeleteRemote = Callable[[str], Awaitable[Envelope]]


class RemoteResourcePort(Protocol):
    """Port exposing the REST operations of one remote collection."""

    async def fetch_all(self) -> Envelope:
        """Return the envelope listing every record."""

    async def create(self, body: Record) -> Envelope:
        """Create a record and return the envelope holding it."""

    async def update(self, record_id: str, body: Record) -> Envelope:
        """Update a record and return the envelope holding it."""

    async def delete(self, record_id: str) -> Envelope:
        """Delete a record."""


def _unwrap(response: Envelope) -> Any:
    if isinstance(response, dict) and "data" in response:
        return response["data"]
    return response


def extract_items(response: Envelope) -> list[Record]:
    """Normalize a listing envelope to a list of records.

    Accepts ``{"data": [...]}``, paginated ``{"data": {"data": [...], ...}}``,
    ``{"data": {"items": [...]}}`` and bare lists. Ids are returned as strings.

    Raises:
        MalformedResponseError: If no list of mappings can be found, or an
            entry has no id.
    """
    body = _unwrap(response)
    if isinstance(body, dict):
        if isinstance(body.get("data"), list):
            body = body["data"]
        elif isinstance(body.get("items"), list):
            body = body["items"]
    if not isinstance(body, list):
        raise MalformedResponseError(
            f"Expected a list of records, got {type(body).__name__}"
        )
    if not all(isinstance(item, dict) for item in body):
        raise MalformedResponseError("Listing contains non-object entries")
    if any(item.get("id") in (None, "") for item in body):
        raise MalformedResponseError("Listing contains entries without an id")
    return [{**item, "id": str(item["id"])} for item in body]


def extract_record(response: Envelope) -> Record:
    """Normalize a single-record envelope to a record with an ``id``.

    Raises:
        MalformedResponseError: If the envelope holds no identifiable record.
    """
    body = _unwrap(response)
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]
    if not isinstance(body, dict) or body.get("id") in (None, ""):
        raise MalformedResponseError("Expected a record with an id")
    record = dict(body)
    record["id"] = str(record["id"])
    return record


@dataclass(frozen=True)
class SyncConfig:
    """Binds a resource key to its remote operations.

    Attributes:
        resource_key: Cache and queue partition name (e.g. ``accounts``).
        fetch_all: Coroutine function listing remote records.
        create: Optional coroutine function creating a record.
        update: Optional coroutine function updating a record.
        delete: Optional coroutine function deleting a record.
        extract: Normalizes a listing envelope to records.
        extract_record: Normalizes a single-record envelope.
    """

    resource_key: str
    fetch_all: FetchAll
    create: CreateRemote | None = None
    update: UpdateRemote | None = None
    delete: DeleteRemote | None = None
    extract: Callable[[Envelope], list[Record]] = extract_items
    extract_record: Callable[[Envelope], Record] = extract_record

    def require(self, operation: str) -> Callable[..., Awaitable[Envelope]]:
        """Return the remote callable for ``operation``.

        Raises:
            SyncConfigurationError: If the operation is not configured.
        """
        handler = getattr(self, operation, None)
        if handler is None:
            raise SyncConfigurationError(
                f"{operation} is not configured for {self.resource_key}"
            )
        return handler

    @classmethod
    def from_resource(
        cls,
        resource_key: str,
        resource: RemoteResourcePort,
        extract: Callable[[Envelope], list[Record]] = extract_items,
        extract_one: Callable[[Envelope], Record] = extract_record,
    ) -> "SyncConfig":
        """Build a config exposing every operation of ``resource``."""
        return cls(
            resource_key=resource_key,
            fetch_all=resource.fetch_all,
            create=resource.create,
            update=resource.update,
            delete=resource.delete,
            extract=extract,
            extract_record=extract_one,
        )


__all__ = [
    "Envelope",
    "RemoteResourcePort",
    "SyncConfig",
    "extract_items",
    "extract_record",
]
