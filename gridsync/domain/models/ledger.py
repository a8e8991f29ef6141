"""Domain models for accounts and their transactions."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from gridsync.domain.constants import (
    DEFAULT_ACCOUNT_TYPE,
    DEFAULT_CURRENCY,
    LINK_TYPES,
    TRANSACTION_EXPENSE,
    TRANSACTION_INCOME,
)
from gridsync.utils.decimal_utils import coerce_decimal, to_json_number


@dataclass(frozen=True)
class Account:
    """Money account whose balance follows its transactions.

    Attributes:
        id: Stable identity (temporary ``local-`` id until synced).
        name: Display name.
        balance: Signed running balance.
        currency: ISO currency code.
        active: Whether the account accepts new movements.
    """

    id: str
    name: str
    balance: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY
    active: bool = True
    account_number: str = ""
    bank_name: str = ""
    account_type: str = DEFAULT_ACCOUNT_TYPE
    payment_method: str | None = None
    created_date: str = ""
    description: str = ""

    def with_delta(self, delta: Decimal) -> "Account":
        """Return a copy with ``delta`` added to the balance."""
        return replace(self, balance=self.balance + delta)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "balance": to_json_number(self.balance),
            "currency": self.currency,
            "active": self.active,
            "account_number": self.account_number,
            "bank_name": self.bank_name,
            "account_type": self.account_type,
            "payment_method": self.payment_method,
            "created_date": self.created_date,
            "description": self.description,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Account":
        active = record.get("active")
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            balance=coerce_decimal(record.get("balance")),
            currency=str(record.get("currency") or DEFAULT_CURRENCY),
            active=True if active is None else bool(active),
            account_number=str(record.get("account_number") or ""),
            bank_name=str(record.get("bank_name") or ""),
            account_type=str(record.get("account_type") or DEFAULT_ACCOUNT_TYPE),
            payment_method=record.get("payment_method"),
            created_date=str(record.get("created_date") or ""),
            description=str(record.get("description") or ""),
        )


@dataclass(frozen=True)
class LinkedRef:
    """Reference from a transaction to the sale or purchase that caused it."""

    type: str
    id: str
    number: str = ""

    def __post_init__(self) -> None:
        if self.type not in LINK_TYPES:
            raise ValueError(f"Unknown link type: {self.type}")

    def matches(self, link_type: str, link_id: str) -> bool:
        return self.type == link_type and self.id == link_id

    def to_record(self) -> dict[str, str]:
        return {"type": self.type, "id": self.id, "number": self.number}

    @classmethod
    def from_record(cls, record: dict[str, Any] | None) -> "LinkedRef | None":
        if not record:
            return None
        return cls(
            type=str(record["type"]),
            id=str(record["id"]),
            number=str(record.get("number") or ""),
        )


@dataclass(frozen=True)
class Transaction:
    """Single income or expense movement on an account."""

    id: str
    account_id: str
    type: str
    amount: Decimal
    description: str = ""
    date: str = ""
    category: str | None = None
    reference: str | None = None
    linked_to: LinkedRef | None = None

    def __post_init__(self) -> None:
        if self.type not in (TRANSACTION_INCOME, TRANSACTION_EXPENSE):
            raise ValueError(f"Unknown transaction type: {self.type}")
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValueError("Transaction amount must be positive")

    @property
    def signed_amount(self) -> Decimal:
        """Return the balance effect: ``+amount`` income, ``-amount`` expense."""
        if self.type == TRANSACTION_INCOME:
            return self.amount
        return -self.amount

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "type": self.type,
            "amount": to_json_number(self.amount),
            "description": self.description,
            "date": self.date,
            "category": self.category,
            "reference": self.reference,
            "linked_to": self.linked_to.to_record() if self.linked_to else None,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Transaction":
        return cls(
            id=str(record["id"]),
            account_id=str(record["account_id"]),
            type=str(record["type"]),
            amount=coerce_decimal(record.get("amount")),
            description=str(record.get("description") or ""),
            date=str(record.get("date") or ""),
            category=record.get("category"),
            reference=record.get("reference"),
            linked_to=LinkedRef.from_record(record.get("linked_to")),
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable view of the accounts domain at one point in time."""

    accounts: tuple[Account, ...] = field(default_factory=tuple)
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)

    def find_account(self, account_id: str) -> Account | None:
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None

    def find_transaction(self, transaction_id: str) -> Transaction | None:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "accounts": [account.to_record() for account in self.accounts],
            "transactions": [
                transaction.to_record() for transaction in self.transactions
            ],
        }


__all__ = ["Account", "LinkedRef", "Transaction", "LedgerSnapshot"]
