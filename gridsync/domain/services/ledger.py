"""Domain services keeping account balances consistent with transactions."""

from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal

from gridsync.domain.models.ledger import Account, Transaction


def summarize_deltas(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum the signed amounts of transactions per account.

    Args:
        transactions: Transactions to aggregate.

    Returns:
        dict[str, Decimal]: Net balance effect keyed by account id.
    """
    deltas: dict[str, Decimal] = {}
    for transaction in transactions:
        deltas[transaction.account_id] = (
            deltas.get(transaction.account_id, Decimal("0"))
            + transaction.signed_amount
        )
    return deltas


def apply_deltas(
    accounts: Iterable[Account],
    deltas: Mapping[str, Decimal],
) -> tuple[Account, ...]:
    """Return accounts with each balance shifted by its delta.

    Accounts without a delta are returned unchanged. Deltas for unknown
    accounts are ignored.
    """
    return tuple(
        account.with_delta(deltas[account.id])
        if account.id in deltas
        else account
        for account in accounts
    )


def partition_linked(
    transactions: Iterable[Transaction],
    link_type: str,
    link_id: str,
) -> tuple[tuple[Transaction, ...], tuple[Transaction, ...], dict[str, Decimal]]:
    """Split transactions on a link in a single pass.

    Args:
        transactions: Current transaction list.
        link_type: ``sale``, ``purchase`` or ``manual``.
        link_id: Identifier of the linked document.

    Returns:
        tuple: Kept transactions, removed transactions, and the per-account
        deltas that reverse the removed ones.
    """
    kept: list[Transaction] = []
    removed: list[Transaction] = []
    reversal: dict[str, Decimal] = {}
    for transaction in transactions:
        link = transaction.linked_to
        if link is not None and link.matches(link_type, link_id):
            removed.append(transaction)
            reversal[transaction.account_id] = (
                reversal.get(transaction.account_id, Decimal("0"))
                - transaction.signed_amount
            )
        else:
            kept.append(transaction)
    return tuple(kept), tuple(removed), reversal


def carry_local_balances(
    incoming: Iterable[Account],
    previous: Iterable[Account],
) -> tuple[Account, ...]:
    """Keep ledger balances for accounts already known locally.

    Transactions live in the local ledger only, so a balance reported by the
    API does not include them. Accounts seen for the first time take the
    remote balance as their opening balance.
    """
    known = {account.id: account.balance for account in previous}
    merged = []
    for account in incoming:
        if account.id in known:
            merged.append(replace(account, balance=known[account.id]))
        else:
            merged.append(account)
    return tuple(merged)


__all__ = [
    "summarize_deltas",
    "apply_deltas",
    "partition_linked",
    "carry_local_balances",
]
