"""Tests for the requests-based REST adapter."""

from unittest.mock import MagicMock

import pytest
import requests

from gridsync.application.ports.errors import (
    MalformedResponseError,
    RemoteNotFoundError,
    RemoteOperationError,
    RemoteUnavailableError,
)
from gridsync.infrastructure.remote_api import RequestsResourceApi


def _response(status_code=200, body=None, content=b"{}"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.text = ""
    response.reason = "Reason"
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def _api(session, token="abc", **kwargs):
    return RequestsResourceApi(
        "http://localhost:3001/api/",
        "/customers",
        token_source=lambda: token,
        session=session,
        logger=MagicMock(),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_fetch_all_sends_bearer_and_tenant_headers() -> None:
    """Requests should carry the token, the tenant and the timeout."""
    session = MagicMock()
    session.request.return_value = _response(body={"data": []})
    api = _api(session, tenant_slug="acme", timeout=3.0)

    envelope = await api.fetch_all()

    assert envelope == {"data": []}
    session.request.assert_called_once_with(
        "GET",
        "http://localhost:3001/api/customers",
        json=None,
        headers={
            "Accept": "application/json",
            "Authorization": "Bearer abc",
            "X-Tenant-Slug": "acme",
        },
        timeout=3.0,
    )


@pytest.mark.asyncio
async def test_create_uses_record_id_as_idempotency_key() -> None:
    """Replayed creates should be recognizable by the server."""
    session = MagicMock()
    session.request.return_value = _response(
        status_code=201,
        body={"data": {"id": "srv-1"}},
    )
    api = _api(session, token=None)

    await api.create({"id": "local-1", "name": "Ana"})

    args, kwargs = session.request.call_args
    assert args == ("POST", "http://localhost:3001/api/customers")
    assert kwargs["json"] == {"id": "local-1", "name": "Ana"}
    assert kwargs["headers"]["Idempotency-Key"] == "local-1"
    assert "Authorization" not in kwargs["headers"]


@pytest.mark.asyncio
async def test_update_and_delete_target_the_record_url() -> None:
    """Record operations should address ``/<collection>/<id>``."""
    session = MagicMock()
    session.request.side_effect = [
        _response(body={"data": {"id": "c1"}}),
        _response(status_code=204, content=b""),
    ]
    api = _api(session)

    await api.update("c1", {"name": "Ann"})
    deleted = await api.delete("c1")

    methods = [call.args for call in session.request.call_args_list]
    assert methods == [
        ("PUT", "http://localhost:3001/api/customers/c1"),
        ("DELETE", "http://localhost:3001/api/customers/c1"),
    ]
    assert deleted is None


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (requests.ConnectionError("refused"), RemoteUnavailableError),
        (requests.Timeout("slow"), RemoteUnavailableError),
        (requests.TooManyRedirects("loop"), RemoteOperationError),
    ],
)
def test_transport_errors_are_classified(error, expected) -> None:
    """Network failures should be told apart from other request errors."""
    session = MagicMock()
    session.request.side_effect = error

    with pytest.raises(expected):
        _api(session)._send("GET", "http://x/customers", None, None)


def test_not_found_maps_to_remote_not_found() -> None:
    """A 404 should be distinguishable from other rejections."""
    session = MagicMock()
    session.request.return_value = _response(status_code=404)

    with pytest.raises(RemoteNotFoundError):
        _api(session)._send("DELETE", "http://x/customers/c1", None, None)


def test_rejection_keeps_status_and_server_message() -> None:
    """4xx and 5xx answers should carry the server's message."""
    session = MagicMock()
    session.request.return_value = _response(
        status_code=422,
        body={"message": "name is required"},
    )

    with pytest.raises(RemoteOperationError) as excinfo:
        _api(session)._send("POST", "http://x/customers", {}, None)

    assert excinfo.value.status_code == 422
    assert "name is required" in str(excinfo.value)


def test_non_json_body_is_malformed() -> None:
    """A 200 that is not JSON should not pass as data."""
    session = MagicMock()
    session.request.return_value = _response(
        body=ValueError("no json"),
        content=b"<html>",
    )

    with pytest.raises(MalformedResponseError):
        _api(session)._send("GET", "http://x/customers", None, None)
