"""Application use cases package."""

from .broadcast_replicator import BroadcastReplicator
from .ledger_store import LedgerStore
from .local_cache import LocalCache
from .mutation_queue import MutationQueue
from .resource_store import ResourceStore
from .sync_engine import SyncEngine

__all__ = [
    "BroadcastReplicator",
    "LedgerStore",
    "LocalCache",
    "MutationQueue",
    "ResourceStore",
    "SyncEngine",
]
