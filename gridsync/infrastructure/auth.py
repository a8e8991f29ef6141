"""Authentication gate adapters."""

import json
from typing import Callable, Optional

from gridsync.application.ports.auth import AuthGatePort
from gridsync.application.ports.errors import StorageUnavailableError
from gridsync.application.ports.storage import KeyValueStoragePort
from gridsync.infrastructure.logging.logger import get_app_logger


AUTH_STATE_KEY = "grid-manager-auth"
PLACEHOLDER_TOKEN = "mock-access-token"

TokenSource = Callable[[], Optional[str]]


def token_from_auth_state(raw: Optional[str]) -> Optional[str]:
    """Extract ``state.tokens.accessToken`` from a persisted auth document.

    Args:
        raw: JSON document, or None when nothing is stored.

    Returns:
        Optional[str]: The access token, or None when absent or unreadable.
    """
    if not raw:
        return None
    try:
        document = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(document, dict):
        return None
    state = document.get("state")
    tokens = state.get("tokens") if isinstance(state, dict) else None
    token = tokens.get("accessToken") if isinstance(tokens, dict) else None
    return token if isinstance(token, str) and token else None


class StoredTokenSource:
    """Reads the access token from the shared auth state document."""

    def __init__(
        self,
        storage: KeyValueStoragePort,
        key: str = AUTH_STATE_KEY,
        logger=None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._logger = logger or get_app_logger()

    def __call__(self) -> Optional[str]:
        try:
            raw = self._storage.get(self._key)
        except StorageUnavailableError as exc:
            self._logger.warning(f"Auth state unavailable ({exc})")
            return None
        return token_from_auth_state(raw)

    def save(self, access_token: Optional[str]) -> None:
        """Persist ``access_token``, or clear the auth state when None."""
        if access_token is None:
            self._storage.delete(self._key)
            return
        document = {"state": {"tokens": {"accessToken": access_token}}}
        self._storage.set(self._key, json.dumps(document))


def static_token_source(token: Optional[str]) -> TokenSource:
    """Return a token source always answering ``token``."""
    return lambda: token


class TokenAuthGate(AuthGatePort):
    """Gate open whenever the token source yields a real token.

    The development placeholder token never counts as authenticated.
    """

    def __init__(self, token_source: TokenSource) -> None:
        self._token_source = token_source

    def access_token(self) -> Optional[str]:
        token = self._token_source()
        if not token or token == PLACEHOLDER_TOKEN:
            return None
        return token

    def is_authenticated(self) -> bool:
        return self.access_token() is not None


__all__ = [
    "AUTH_STATE_KEY",
    "PLACEHOLDER_TOKEN",
    "StoredTokenSource",
    "TokenAuthGate",
    "static_token_source",
    "token_from_auth_state",
]
