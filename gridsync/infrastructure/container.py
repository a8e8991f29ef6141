"""Composition root for wiring infrastructure adapters."""

from dataclasses import dataclass, field
from typing import Optional

import requests

from gridsync.application.ports.auth import AuthGatePort
from gridsync.application.ports.broadcast import BroadcastChannelPort
from gridsync.application.ports.database import DatabaseEnginePort
from gridsync.application.ports.remote import SyncConfig
from gridsync.application.ports.storage import KeyValueStoragePort
from gridsync.application.use_cases.broadcast_replicator import (
    BroadcastReplicator,
)
from gridsync.application.use_cases.ledger_store import LedgerStore
from gridsync.application.use_cases.local_cache import LocalCache
from gridsync.application.use_cases.mutation_queue import MutationQueue
from gridsync.application.use_cases.resource_store import ResourceStore
from gridsync.application.use_cases.sync_engine import SyncEngine
from gridsync.domain.models.sync import FlushReport
from gridsync.infrastructure.auth import (
    StoredTokenSource,
    TokenAuthGate,
    static_token_source,
)
from gridsync.infrastructure.broadcast import (
    InProcessBroadcastHub,
    StorageBroadcastChannel,
)
from gridsync.infrastructure.db import SqlAlchemyDatabaseEngineAdapter
from gridsync.infrastructure.kv_storage import SqlAlchemyKeyValueStorage
from gridsync.infrastructure.logging.logger import get_app_logger
from gridsync.infrastructure.remote_api import RequestsResourceApi
from gridsync.infrastructure.resource_configs import ACCOUNTS, build_sync_config
from gridsync.infrastructure.settings import BROADCAST_STORAGE, SyncSettings


@dataclass
class Application:
    """Every store of one execution context, wired to shared adapters."""

    settings: SyncSettings
    storage: KeyValueStoragePort
    auth_gate: AuthGatePort
    engine: SyncEngine
    configs: dict[str, SyncConfig]
    ledger: Optional[LedgerStore] = None
    stores: dict[str, ResourceStore] = field(default_factory=dict)
    replicators: list[BroadcastReplicator] = field(default_factory=list)
    channels: list[BroadcastChannelPort] = field(default_factory=list)

    async def flush_all(self) -> list[FlushReport]:
        """Replay the queued mutations of every configured resource."""
        return [await self.engine.flush(config) for config in self.configs.values()]

    def start_polling(self) -> None:
        """Start polling storage-backed channels on the running loop."""
        for channel in self.channels:
            if isinstance(channel, StorageBroadcastChannel):
                channel.start()

    async def aclose(self) -> None:
        for replicator in self.replicators:
            await replicator.aclose()
        for channel in self.channels:
            channel.close()


def build_database_adapter(
    settings: Optional[SyncSettings] = None,
) -> DatabaseEnginePort:
    """Return the database adapter instance."""
    if settings is None or not settings.storage_url:
        return SqlAlchemyDatabaseEngineAdapter()
    return SqlAlchemyDatabaseEngineAdapter(settings.storage_url)


def build_storage(
    settings: SyncSettings,
    db_port: Optional[DatabaseEnginePort] = None,
) -> KeyValueStoragePort:
    """Return the persisted key/value storage."""
    resolved_db = db_port or build_database_adapter(settings)
    return SqlAlchemyKeyValueStorage(resolved_db, logger=get_app_logger())


def build_auth_gate(
    settings: SyncSettings,
    storage: KeyValueStoragePort,
) -> AuthGatePort:
    """Return the auth gate; a configured API token wins over stored state."""
    if settings.api_token:
        return TokenAuthGate(static_token_source(settings.api_token))
    return TokenAuthGate(StoredTokenSource(storage, logger=get_app_logger()))


def build_sync_configs(
    settings: SyncSettings,
    auth_gate: AuthGatePort,
    session: Optional[requests.Session] = None,
) -> dict[str, SyncConfig]:
    """Return one sync config per configured resource."""
    shared_session = session or requests.Session()
    configs = {}
    for resource_key in settings.resources:
        api = RequestsResourceApi(
            settings.api_url,
            resource_key,
            token_source=auth_gate.access_token,
            timeout=settings.request_timeout,
            session=shared_session,
            tenant_slug=settings.tenant_slug,
            logger=get_app_logger(),
        )
        configs[resource_key] = build_sync_config(resource_key, api)
    return configs


def build_sync_engine(
    settings: SyncSettings,
    storage: KeyValueStoragePort,
    auth_gate: AuthGatePort,
) -> SyncEngine:
    """Return the sync engine over the persisted cache and queue."""
    logger = get_app_logger()
    return SyncEngine(
        LocalCache(storage, logger=logger),
        MutationQueue(storage, logger=logger),
        auth_gate,
        logger=logger,
        remote_timeout=settings.request_timeout,
    )


def build_broadcast_channel(
    settings: SyncSettings,
    storage: KeyValueStoragePort,
    name: str,
    hub: Optional[InProcessBroadcastHub] = None,
) -> BroadcastChannelPort:
    """Return the channel transport selected by the settings."""
    if settings.broadcast == BROADCAST_STORAGE:
        return StorageBroadcastChannel(
            storage,
            name,
            poll_interval=settings.poll_interval,
            logger=get_app_logger(),
        )
    return (hub or InProcessBroadcastHub()).channel(name)


def build_application(
    settings: Optional[SyncSettings] = None,
    storage: Optional[KeyValueStoragePort] = None,
    hub: Optional[InProcessBroadcastHub] = None,
    session: Optional[requests.Session] = None,
) -> Application:
    """Wire the stores of one execution context.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        storage: Shared storage; the SQLAlchemy storage when omitted.
        hub: In-process hub shared with sibling contexts.
        session: HTTP session shared by every resource API.

    Returns:
        Application: The wired context.
    """
    resolved_settings = settings or SyncSettings.from_env()
    resolved_storage = storage or build_storage(resolved_settings)
    resolved_hub = hub or InProcessBroadcastHub()
    auth_gate = build_auth_gate(resolved_settings, resolved_storage)
    configs = build_sync_configs(resolved_settings, auth_gate, session=session)
    engine = build_sync_engine(resolved_settings, resolved_storage, auth_gate)
    app = Application(
        settings=resolved_settings,
        storage=resolved_storage,
        auth_gate=auth_gate,
        engine=engine,
        configs=configs,
    )

    logger = get_app_logger()
    for resource_key, config in configs.items():
        channel = build_broadcast_channel(
            resolved_settings,
            resolved_storage,
            resource_key,
            hub=resolved_hub,
        )
        replicator = BroadcastReplicator(channel, logger=logger)
        app.channels.append(channel)
        app.replicators.append(replicator)
        if resource_key == ACCOUNTS:
            app.ledger = LedgerStore(
                engine,
                config,
                replicator=replicator,
                logger=logger,
            )
        else:
            app.stores[resource_key] = ResourceStore(
                engine,
                config,
                replicator=replicator,
                logger=logger,
            )
    return app


__all__ = [
    "Application",
    "build_database_adapter",
    "build_storage",
    "build_auth_gate",
    "build_sync_configs",
    "build_sync_engine",
    "build_broadcast_channel",
    "build_application",
]
