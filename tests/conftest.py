"""Shared fakes for the sync core tests."""

from __future__ import annotations

import itertools
from unittest.mock import MagicMock

import pytest

from gridsync.application.ports.errors import (
    RemoteNotFoundError,
    StorageUnavailableError,
)
from gridsync.application.ports.remote import SyncConfig
from gridsync.application.use_cases.local_cache import LocalCache
from gridsync.application.use_cases.mutation_queue import MutationQueue
from gridsync.application.use_cases.sync_engine import SyncEngine
from gridsync.infrastructure.kv_storage import InMemoryKeyValueStorage


class FakeRemote:
    """In-memory REST collection recording every call.

    Creates are idempotent on the client id, like a server honouring the
    ``Idempotency-Key`` header.
    """

    def __init__(self, records=None) -> None:
        self.records: dict[str, dict] = {
            record["id"]: dict(record) for record in records or []
        }
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None
        self.fail_ops: dict[str, Exception] = {}
        self._ids = itertools.count(1)
        self._created: dict[str, str] = {}

    def _check(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        error = self.fail_ops.get(operation) or self.fail_with
        if error is not None:
            raise error

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def fetch_all(self):
        self._check("fetch_all")
        return {"data": [dict(record) for record in self.records.values()]}

    async def create(self, body):
        self._check("create", dict(body))
        client_id = body.get("id")
        if client_id in self._created:
            server_id = self._created[client_id]
        else:
            server_id = f"srv-{next(self._ids)}"
            if client_id:
                self._created[client_id] = server_id
            self.records[server_id] = {**body, "id": server_id}
        return {"data": dict(self.records[server_id])}

    async def update(self, record_id, body):
        self._check("update", record_id, dict(body))
        if record_id not in self.records:
            raise RemoteNotFoundError(record_id)
        self.records[record_id].update(body)
        return {"data": dict(self.records[record_id])}

    async def delete(self, record_id):
        self._check("delete", record_id)
        if record_id not in self.records:
            raise RemoteNotFoundError(record_id)
        del self.records[record_id]
        return None


class FakeAuthGate:
    """Auth gate toggled by the test."""

    def __init__(self, authenticated: bool = True) -> None:
        self.authenticated = authenticated

    def is_authenticated(self) -> bool:
        return self.authenticated

    def access_token(self):
        return "token" if self.authenticated else None


class FailingStorage:
    """Storage whose every operation fails."""

    def __init__(self) -> None:
        self.calls = 0

    def get(self, key):
        self.calls += 1
        raise StorageUnavailableError("disk full")

    def set(self, key, value):
        self.calls += 1
        raise StorageUnavailableError("disk full")

    def delete(self, key):
        self.calls += 1
        raise StorageUnavailableError("disk full")


def make_engine(storage, auth_gate, **kwargs) -> SyncEngine:
    """Build an engine over ``storage`` with silent loggers."""
    logger = kwargs.pop("logger", MagicMock())
    return SyncEngine(
        LocalCache(storage, logger=logger),
        MutationQueue(storage, logger=logger),
        auth_gate,
        logger=logger,
        **kwargs,
    )


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def storage():
    return InMemoryKeyValueStorage()


@pytest.fixture
def auth_gate():
    return FakeAuthGate(authenticated=True)


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def config(remote):
    return SyncConfig.from_resource("customers", remote)


@pytest.fixture
def engine(storage, auth_gate, logger):
    return make_engine(storage, auth_gate, logger=logger)


@pytest.fixture
def remote_factory():
    return FakeRemote


@pytest.fixture
def auth_factory():
    return FakeAuthGate


@pytest.fixture
def engine_factory():
    return make_engine


@pytest.fixture
def failing_storage():
    return FailingStorage()
