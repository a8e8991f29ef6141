"""Broadcast channel transports between execution contexts.

Two transports implement :class:`BroadcastChannelPort`:

* :class:`InProcessBroadcastHub` hands out channels sharing one process; each
  delivery gets its own JSON round-tripped copy of the message, as a
  structured-clone channel would.
* :class:`StorageBroadcastChannel` stores the last event of a channel under
  ``sync-broadcast:<name>`` in the shared key/value storage and lets every
  process poll it.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any, Callable

from gridsync.application.ports.broadcast import (
    BroadcastChannelPort,
    MessageCallback,
)
from gridsync.application.ports.errors import StorageUnavailableError
from gridsync.application.ports.storage import KeyValueStoragePort
from gridsync.infrastructure.logging.logger import get_app_logger


BROADCAST_KEY_PREFIX = "sync-broadcast:"
DEFAULT_POLL_INTERVAL = 2.0


def broadcast_key(name: str) -> str:
    return f"{BROADCAST_KEY_PREFIX}{name}"


class InProcessBroadcastHub:
    """Registry of named channels living in one process."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[MessageCallback]] = {}

    def channel(self, name: str) -> "InProcessBroadcastChannel":
        return InProcessBroadcastChannel(self, name)

    def subscriber_count(self, name: str) -> int:
        return len(self._subscribers.get(name, []))

    def _subscribe(self, name: str, callback: MessageCallback) -> Callable[[], None]:
        self._subscribers.setdefault(name, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(name, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _publish(self, name: str, message: dict[str, Any]) -> None:
        encoded = json.dumps(message, default=str)
        for callback in list(self._subscribers.get(name, [])):
            callback(json.loads(encoded))


class InProcessBroadcastChannel(BroadcastChannelPort):
    """Handle on one named channel of an :class:`InProcessBroadcastHub`."""

    def __init__(self, hub: InProcessBroadcastHub, name: str) -> None:
        self._hub = hub
        self._name = name
        self._unsubscribers: list[Callable[[], None]] = []
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    def post(self, message: dict[str, Any]) -> None:
        if self._closed:
            return
        self._hub._publish(self._name, message)

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        unsubscribe = self._hub._subscribe(self._name, callback)
        self._unsubscribers.append(unsubscribe)
        return unsubscribe

    def close(self) -> None:
        self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()


class StorageBroadcastChannel(BroadcastChannelPort):
    """Channel shared by processes through the persisted storage.

    Only the last event is kept. A peer polling less often than events are
    posted observes the latest one, which carries the full state.
    """

    def __init__(
        self,
        storage: KeyValueStoragePort,
        name: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        logger=None,
    ) -> None:
        """Initialize the channel.

        Args:
            storage: Key/value storage shared by every process.
            name: Channel name.
            poll_interval: Seconds between polls once :meth:`start` runs.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._storage = storage
        self._key = broadcast_key(name)
        self._poll_interval = poll_interval
        self._logger = logger or get_app_logger()
        self._callbacks: list[MessageCallback] = []
        self._task: asyncio.Task | None = None
        self._last_seen = self._read_envelope_id()

    def post(self, message: dict[str, Any]) -> None:
        envelope_id = uuid.uuid4().hex
        envelope = {"id": envelope_id, "message": message}
        try:
            self._storage.set(self._key, json.dumps(envelope, default=str))
        except StorageUnavailableError as exc:
            self._logger.warning(f"Broadcast on {self._key} not stored ({exc})")
            return
        self._last_seen = envelope_id

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def poll(self) -> bool:
        """Deliver the stored event if it has not been seen yet.

        Returns:
            bool: True when an event was delivered.
        """
        envelope = self._read_envelope()
        if envelope is None or envelope.get("id") == self._last_seen:
            return False
        self._last_seen = envelope.get("id")
        message = envelope.get("message")
        for callback in list(self._callbacks):
            callback(message)
        return True

    def start(self) -> asyncio.Task:
        """Poll on the running event loop until :meth:`close`."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._callbacks.clear()

    async def _run(self) -> None:
        while True:
            self.poll()
            await asyncio.sleep(self._poll_interval)

    def _read_envelope(self) -> dict[str, Any] | None:
        try:
            raw = self._storage.get(self._key)
        except StorageUnavailableError as exc:
            self._logger.warning(f"Broadcast poll of {self._key} failed ({exc})")
            return None
        if raw is None:
            return None
        try:
            envelope = json.loads(raw)
        except ValueError:
            self._logger.warning(f"Ignoring undecodable event on {self._key}")
            return None
        return envelope if isinstance(envelope, dict) else None

    def _read_envelope_id(self) -> str | None:
        envelope = self._read_envelope()
        return envelope.get("id") if envelope else None


__all__ = [
    "BROADCAST_KEY_PREFIX",
    "broadcast_key",
    "InProcessBroadcastHub",
    "InProcessBroadcastChannel",
    "StorageBroadcastChannel",
]
