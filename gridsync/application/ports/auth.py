"""Port for the authentication gate consulted before remote calls."""

from typing import Protocol


class AuthGatePort(Protocol):
    """Port answering whether remote calls may be attempted."""

    def is_authenticated(self) -> bool:
        """Return True when a usable access token is available."""

    def access_token(self) -> str | None:
        """Return the current access token, if any."""


__all__ = ["AuthGatePort"]
