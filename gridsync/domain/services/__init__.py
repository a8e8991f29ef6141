"""Domain services package."""

from .ledger import (
    apply_deltas,
    carry_local_balances,
    partition_linked,
    summarize_deltas,
)
from .snapshots import (
    dedupe_records,
    merge_remote_with_cached,
    patch_record,
    remove_record,
    upsert_record,
)

__all__ = [
    "apply_deltas",
    "carry_local_balances",
    "partition_linked",
    "summarize_deltas",
    "dedupe_records",
    "merge_remote_with_cached",
    "patch_record",
    "remove_record",
    "upsert_record",
]
