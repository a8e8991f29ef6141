"""Domain package for sync records and ledger rules."""

from .models import (
    Account,
    BroadcastEvent,
    FlushReport,
    LedgerSnapshot,
    LinkedRef,
    QueuedMutation,
    Record,
    SyncResult,
    Transaction,
)
from .policies import validate_transfer
from .services import (
    apply_deltas,
    carry_local_balances,
    dedupe_records,
    merge_remote_with_cached,
    partition_linked,
    patch_record,
    remove_record,
    summarize_deltas,
    upsert_record,
)

__all__ = [
    "Account",
    "BroadcastEvent",
    "FlushReport",
    "LedgerSnapshot",
    "LinkedRef",
    "QueuedMutation",
    "Record",
    "SyncResult",
    "Transaction",
    "validate_transfer",
    "apply_deltas",
    "carry_local_balances",
    "dedupe_records",
    "merge_remote_with_cached",
    "partition_linked",
    "patch_record",
    "remove_record",
    "summarize_deltas",
    "upsert_record",
]
