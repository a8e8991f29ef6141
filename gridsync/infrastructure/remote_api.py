"""HTTP adapter for the REST collections of the Grid Manager API."""

import asyncio
from typing import Any, Optional

import requests

from gridsync.application.ports.errors import (
    MalformedResponseError,
    RemoteNotFoundError,
    RemoteOperationError,
    RemoteUnavailableError,
)
from gridsync.application.ports.remote import Envelope, RemoteResourcePort
from gridsync.infrastructure.auth import TokenSource
from gridsync.infrastructure.logging.logger import get_app_logger


def _error_message_from_response(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class RequestsResourceApi(RemoteResourcePort):
    """One REST collection (``/accounts``, ``/customers``...) over requests.

    Calls are blocking ``requests`` calls run in a worker thread, so awaiting
    them suspends only the calling operation.
    """

    def __init__(
        self,
        base_url: str,
        resource_path: str,
        token_source: TokenSource,
        timeout: Optional[float] = 15.0,
        session: Optional[requests.Session] = None,
        tenant_slug: Optional[str] = None,
        logger=None,
    ) -> None:
        """Initialize the adapter.

        Args:
            base_url: API root, e.g. ``http://localhost:3001/api``.
            resource_path: Collection path, e.g. ``accounts``.
            token_source: Callable returning the bearer token, if any.
            timeout: Per-request timeout in seconds; None waits forever.
            session: Optional shared ``requests.Session``.
            tenant_slug: Optional tenant sent as ``X-Tenant-Slug``.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._url = f"{base_url.rstrip('/')}/{resource_path.strip('/')}"
        self._token_source = token_source
        self._timeout = timeout
        self._session = session or requests.Session()
        self._tenant_slug = tenant_slug
        self._logger = logger or get_app_logger()

    @property
    def url(self) -> str:
        return self._url

    async def fetch_all(self) -> Envelope:
        return await self._request("GET", self._url)

    async def create(
        self,
        body: dict[str, Any],
        idempotency_key: Optional[str] = None,
    ) -> Envelope:
        """POST a new record.

        ``idempotency_key`` defaults to the body's ``id`` so a replayed
        create is recognized by the server.
        """
        return await self._request(
            "POST",
            self._url,
            body=body,
            idempotency_key=idempotency_key or body.get("id"),
        )

    async def update(self, record_id: str, body: dict[str, Any]) -> Envelope:
        return await self._request("PUT", f"{self._url}/{record_id}", body=body)

    async def delete(self, record_id: str) -> Envelope:
        return await self._request("DELETE", f"{self._url}/{record_id}")

    async def _request(
        self,
        method: str,
        url: str,
        body: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Envelope:
        return await asyncio.to_thread(
            self._send,
            method,
            url,
            body,
            idempotency_key,
        )

    def _headers(self, idempotency_key: Optional[str]) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self._token_source()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self._tenant_slug:
            headers["X-Tenant-Slug"] = self._tenant_slug
        if idempotency_key:
            headers["Idempotency-Key"] = str(idempotency_key)
        return headers

    def _send(
        self,
        method: str,
        url: str,
        body: Optional[dict[str, Any]],
        idempotency_key: Optional[str],
    ) -> Envelope:
        try:
            response = self._session.request(
                method,
                url,
                json=body,
                headers=self._headers(idempotency_key),
                timeout=self._timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RemoteUnavailableError(f"{method} {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise RemoteOperationError(f"{method} {url}: {exc}") from exc

        if response.status_code == 404:
            raise RemoteNotFoundError(f"{method} {url}: not found")
        if response.status_code >= 400:
            message = _error_message_from_response(response)
            self._logger.warning(
                f"{method} {url} answered {response.status_code}: {message}"
            )
            raise RemoteOperationError(
                f"{method} {url}: {message}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"{method} {url}: response is not JSON"
            ) from exc


__all__ = ["RequestsResourceApi"]
