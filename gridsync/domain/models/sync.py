"""Domain models for the synchronization core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from gridsync.domain.constants import EVENT_TYPES, OPERATIONS


T = TypeVar("T")

Record = dict[str, Any]


@dataclass(frozen=True)
class QueuedMutation:
    """A pending write waiting to be replayed against the remote API.

    Attributes:
        id: Identity of the queue entry itself.
        resource_key: Collection the write belongs to (e.g. ``accounts``).
        operation: One of ``create``, ``update`` or ``delete``.
        payload: Body replayed remotely. ``update`` payloads hold
            ``{"id", "updates"}``, ``delete`` payloads hold ``{"id"}``.
        temp_id: Local placeholder id produced by an offline ``create``.
        timestamp: ISO-8601 UTC enqueue time.
    """

    id: str
    resource_key: str
    operation: str
    payload: Record
    timestamp: str
    temp_id: str | None = None

    def __post_init__(self) -> None:
        if self.operation not in OPERATIONS:
            raise ValueError(f"Unknown mutation operation: {self.operation}")

    @property
    def target_id(self) -> str | None:
        """Return the record id this mutation applies to."""
        if self.operation == "create":
            return self.temp_id or self.payload.get("id")
        return self.payload.get("id") or self.temp_id

    def to_record(self) -> Record:
        return {
            "id": self.id,
            "resourceKey": self.resource_key,
            "operation": self.operation,
            "payload": self.payload,
            "tempId": self.temp_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, record: Record) -> "QueuedMutation":
        return cls(
            id=str(record["id"]),
            resource_key=str(record["resourceKey"]),
            operation=str(record["operation"]),
            payload=dict(record.get("payload") or {}),
            timestamp=str(record.get("timestamp") or ""),
            temp_id=record.get("tempId"),
        )


@dataclass(frozen=True)
class BroadcastEvent:
    """Message exchanged between execution contexts of the application."""

    type: str
    source: str
    timestamp: int
    payload: Record | None = None

    def __post_init__(self) -> None:
        if self.type not in EVENT_TYPES:
            raise ValueError(f"Unknown broadcast event type: {self.type}")

    def to_message(self) -> Record:
        message: Record = {
            "type": self.type,
            "source": self.source,
            "timestamp": self.timestamp,
        }
        if self.payload is not None:
            message["payload"] = self.payload
        return message

    @classmethod
    def from_message(cls, message: Any) -> "BroadcastEvent":
        """Parse a received message.

        Raises:
            ValueError: If the message is not a well-formed broadcast event.
        """
        if not isinstance(message, dict):
            raise ValueError("Broadcast message must be a mapping")
        try:
            source = message["source"]
            event_type = message["type"]
        except KeyError as exc:
            raise ValueError(f"Broadcast message missing {exc}") from exc
        payload = message.get("payload")
        if payload is not None and not isinstance(payload, dict):
            raise ValueError("Broadcast payload must be a mapping")
        return cls(
            type=str(event_type),
            source=str(source),
            timestamp=int(message.get("timestamp") or 0),
            payload=payload,
        )


@dataclass(frozen=True)
class SyncResult(Generic[T]):
    """Outcome of an engine operation.

    ``ok`` results carry data confirmed by the remote API. ``degraded``
    results carry the best local data available and the reason the remote
    path was not taken or failed.
    """

    data: T
    status: str = "ok"
    reason: str | None = None

    @classmethod
    def ok(cls, data: T) -> "SyncResult[T]":
        return cls(data=data)

    @classmethod
    def degraded(cls, data: T, reason: str) -> "SyncResult[T]":
        return cls(data=data, status="degraded", reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def is_degraded(self) -> bool:
        return self.status == "degraded"


@dataclass
class FlushReport:
    """Summary of a mutation queue flush for one resource."""

    resource_key: str
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def pending(self) -> int:
        return self.failed + self.skipped


__all__ = [
    "Record",
    "QueuedMutation",
    "BroadcastEvent",
    "SyncResult",
    "FlushReport",
]
