"""Port for the cross-context publish/subscribe channel."""

from typing import Any, Callable, Protocol


MessageCallback = Callable[[dict[str, Any]], None]


class BroadcastChannelPort(Protocol):
    """Named channel shared by every execution context of the application.

    Messages are JSON-serializable mappings. A channel may deliver a context's
    own messages back to it; receivers filter on the message source.
    """

    def post(self, message: dict[str, Any]) -> None:
        """Send ``message`` to every subscriber of the channel."""

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""

    def close(self) -> None:
        """Release the channel and drop every subscription."""


__all__ = ["BroadcastChannelPort", "MessageCallback"]
