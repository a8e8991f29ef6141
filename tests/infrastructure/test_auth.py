"""Tests for the authentication gate adapters."""

import json
from unittest.mock import MagicMock

import pytest

from gridsync.infrastructure.auth import (
    AUTH_STATE_KEY,
    PLACEHOLDER_TOKEN,
    StoredTokenSource,
    TokenAuthGate,
    static_token_source,
    token_from_auth_state,
)
from gridsync.infrastructure.kv_storage import InMemoryKeyValueStorage


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "not json",
        "[]",
        json.dumps({"state": {"tokens": None}}),
        json.dumps({"state": {"tokens": {"accessToken": ""}}}),
    ],
)
def test_token_from_auth_state_tolerates_missing_tokens(raw) -> None:
    """Unreadable auth documents should mean no token."""
    assert token_from_auth_state(raw) is None


def test_stored_token_source_reads_and_saves() -> None:
    """Saved tokens should be readable through the shared auth document."""
    storage = InMemoryKeyValueStorage()
    source = StoredTokenSource(storage, logger=MagicMock())

    source.save("abc")

    assert source() == "abc"
    stored = json.loads(storage.get(AUTH_STATE_KEY))
    assert stored == {"state": {"tokens": {"accessToken": "abc"}}}

    source.save(None)

    assert source() is None
    assert storage.get(AUTH_STATE_KEY) is None


def test_stored_token_source_survives_storage_failure(failing_storage) -> None:
    """A broken storage should read as signed out."""
    logger = MagicMock()
    source = StoredTokenSource(failing_storage, logger=logger)

    assert source() is None
    logger.warning.assert_called_once()


@pytest.mark.parametrize(
    ("token", "authenticated"),
    [("real-token", True), (PLACEHOLDER_TOKEN, False), (None, False)],
)
def test_gate_requires_real_token(token, authenticated) -> None:
    """The placeholder token should never open the gate."""
    gate = TokenAuthGate(static_token_source(token))

    assert gate.is_authenticated() is authenticated
    assert gate.access_token() == (token if authenticated else None)


def test_gate_follows_token_changes() -> None:
    """Signing in or out should be picked up on the next check."""
    storage = InMemoryKeyValueStorage()
    source = StoredTokenSource(storage, logger=MagicMock())
    gate = TokenAuthGate(source)

    assert gate.is_authenticated() is False
    source.save("abc")
    assert gate.is_authenticated() is True
