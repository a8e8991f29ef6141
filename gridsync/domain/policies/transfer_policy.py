"""Preconditions for moving money between two accounts."""

from decimal import Decimal

from gridsync.domain.models.ledger import Account


INVALID_AMOUNT = "Transfer amount must be greater than 0."
ACCOUNTS_NOT_FOUND = "The selected accounts were not found."
SAME_ACCOUNT = "Select two different accounts to transfer between."
INSUFFICIENT_BALANCE = "Insufficient balance in the source account."


def validate_transfer(
    source: Account | None,
    destination: Account | None,
    amount: Decimal,
    source_id: str,
    destination_id: str,
) -> str | None:
    """Return the user-facing reason a transfer is rejected, if any.

    Args:
        source: Account the money leaves, or None when unknown.
        destination: Account the money enters, or None when unknown.
        amount: Requested transfer amount.
        source_id: Requested source account id.
        destination_id: Requested destination account id.

    Returns:
        str | None: Error message, or None when the transfer may proceed.
    """
    if not amount.is_finite() or amount <= 0:
        return INVALID_AMOUNT
    if source is None or destination is None:
        return ACCOUNTS_NOT_FOUND
    if source_id == destination_id:
        return SAME_ACCOUNT
    if source.balance < amount:
        return INSUFFICIENT_BALANCE
    return None


__all__ = [
    "validate_transfer",
    "INVALID_AMOUNT",
    "ACCOUNTS_NOT_FOUND",
    "SAME_ACCOUNT",
    "INSUFFICIENT_BALANCE",
]
