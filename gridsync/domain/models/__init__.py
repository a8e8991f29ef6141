"""Domain models package."""

from .ledger import Account, LedgerSnapshot, LinkedRef, Transaction
from .sync import BroadcastEvent, FlushReport, QueuedMutation, Record, SyncResult

__all__ = [
    "Account",
    "LedgerSnapshot",
    "LinkedRef",
    "Transaction",
    "BroadcastEvent",
    "FlushReport",
    "QueuedMutation",
    "Record",
    "SyncResult",
]
