"""Replication of store state between execution contexts."""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Awaitable, Callable

from gridsync.application.ports.broadcast import BroadcastChannelPort
from gridsync.domain.constants import EVENT_REQUEST_REFRESH, EVENT_STATE_UPDATE
from gridsync.domain.models.sync import BroadcastEvent
from gridsync.infrastructure.logging.logger import get_app_logger


StateHandler = Callable[[dict[str, Any]], None]
RefreshHandler = Callable[[], Awaitable[Any]]


def _now_millis() -> int:
    return int(time.time() * 1000)


class BroadcastReplicator:
    """Publishes local state and applies state received from peers.

    Every replicator carries a context id; events it receives with its own
    id as source are ignored, so a context never re-applies what it sent.
    """

    def __init__(
        self,
        channel: BroadcastChannelPort,
        context_id: str | None = None,
        logger=None,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        """Subscribe to ``channel``.

        Args:
            channel: Shared publish/subscribe channel.
            context_id: Identity of this execution context. Generated when
                omitted.
            logger: Optional logger compatible with logging.Logger-like API.
            clock: Millisecond timestamp source for outgoing events.
        """
        self._channel = channel
        self._context_id = context_id or uuid.uuid4().hex
        self._logger = logger or get_app_logger()
        self._clock = clock
        self._state_handlers: list[StateHandler] = []
        self._refresh_handlers: list[RefreshHandler] = []
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = channel.subscribe(self._receive)
        self._closed = False

    @property
    def context_id(self) -> str:
        return self._context_id

    def on_state_update(self, handler: StateHandler) -> None:
        """Register a handler replacing local state with a received payload."""
        self._state_handlers.append(handler)

    def on_refresh_request(self, handler: RefreshHandler) -> None:
        """Register a coroutine function run when a peer asks for a refresh."""
        self._refresh_handlers.append(handler)

    def publish_state(self, payload: dict[str, Any]) -> None:
        """Announce the new state of this context to its peers."""
        self._post(EVENT_STATE_UPDATE, payload)

    def request_refresh(self) -> None:
        """Ask every peer to reload its data."""
        self._post(EVENT_REQUEST_REFRESH)

    async def aclose(self) -> None:
        """Stop listening and wait for refreshes already scheduled."""
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _post(self, event_type: str, payload: dict[str, Any] | None = None) -> None:
        if self._closed:
            self._logger.warning(f"Dropping {event_type}: replicator is closed")
            return
        event = BroadcastEvent(
            type=event_type,
            source=self._context_id,
            timestamp=self._clock(),
            payload=payload,
        )
        self._channel.post(event.to_message())

    def _receive(self, message: dict[str, Any]) -> None:
        try:
            event = BroadcastEvent.from_message(message)
        except (TypeError, ValueError) as exc:
            self._logger.warning(f"Ignoring malformed broadcast message: {exc}")
            return
        if event.source == self._context_id:
            return

        if event.type == EVENT_STATE_UPDATE:
            if event.payload is None:
                self._logger.warning("Ignoring state update without payload")
                return
            for handler in list(self._state_handlers):
                handler(event.payload)
        else:
            self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning(
                "Refresh requested outside a running event loop; skipped"
            )
            return
        for handler in list(self._refresh_handlers):
            task = loop.create_task(handler())
            self._tasks.add(task)
            task.add_done_callback(self._finish_task)

    def _finish_task(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(f"Refresh after peer request failed: {exc!r}")


__all__ = ["BroadcastReplicator", "StateHandler", "RefreshHandler"]
