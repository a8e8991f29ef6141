"""Accounts and transactions store kept consistent across contexts.

Accounts are synchronized with the remote API through the
:class:`SyncEngine`. Transactions live in the local ledger only; every
balance change they cause is applied together with the transaction in a
single snapshot swap, so no observer ever sees one without the other.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date as date_type
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable

from gridsync.application.ports.errors import RemoteError
from gridsync.application.ports.remote import SyncConfig
from gridsync.application.use_cases.broadcast_replicator import (
    BroadcastReplicator,
)
from gridsync.application.use_cases.sync_engine import (
    OFFLINE_REASON,
    SyncEngine,
)
from gridsync.domain.constants import (
    LINK_CATEGORIES,
    SYNC_MODE_OFFLINE,
    SYNC_MODE_ONLINE,
    TRANSACTION_EXPENSE,
    TRANSACTION_INCOME,
    TRANSFER_CATEGORY,
    TRANSFER_DEFAULT_DESCRIPTION,
)
from gridsync.domain.models.ledger import (
    Account,
    LedgerSnapshot,
    LinkedRef,
    Transaction,
)
from gridsync.domain.models.sync import Record, SyncResult
from gridsync.domain.policies.transfer_policy import validate_transfer
from gridsync.domain.services.ledger import (
    apply_deltas,
    carry_local_balances,
    partition_linked,
    summarize_deltas,
)
from gridsync.infrastructure.logging.logger import get_app_logger
from gridsync.utils.decimal_utils import coerce_decimal, to_json_number


TRANSACTIONS_KEY = "transactions"

ACCOUNT_NOT_FOUND = "The selected account does not exist."
TRANSACTION_NOT_FOUND = "The selected transaction was not found."
ZERO_AMOUNT = "The transaction amount cannot be zero."

Listener = Callable[["LedgerStore"], None]


def _new_id() -> str:
    return str(uuid.uuid4())


def _today() -> str:
    return date_type.today().isoformat()


class LedgerStore:
    """In-memory accounts domain backed by the sync engine.

    Attributes:
        error: Last user-facing error, cleared by each new operation.
        sync_mode: ``online`` when the last remote operation succeeded.
        is_loading: True while :meth:`load_accounts` awaits the API.
    """

    def __init__(
        self,
        engine: SyncEngine,
        accounts_config: SyncConfig,
        replicator: BroadcastReplicator | None = None,
        logger=None,
        id_factory: Callable[[], str] = _new_id,
        today: Callable[[], str] = _today,
    ) -> None:
        """Restore the ledger from the local cache.

        Args:
            engine: Sync engine shared by every store of the context.
            accounts_config: Remote operations of the accounts resource.
            replicator: Optional channel to peer contexts.
            logger: Optional logger compatible with logging.Logger-like API.
            id_factory: Generator of transaction ids.
            today: Source of the default movement date (``YYYY-MM-DD``).
        """
        self._engine = engine
        self._config = accounts_config
        self._replicator = replicator
        self._logger = logger or get_app_logger()
        self._id_factory = id_factory
        self._today = today
        self._listeners: list[Listener] = []

        self.error: str | None = None
        self.sync_mode = engine.mode()
        self.is_loading = False
        self._snapshot = LedgerSnapshot(
            accounts=self._parse_accounts(engine.snapshot(self._accounts_key)),
            transactions=self._parse_transactions(
                engine.snapshot(TRANSACTIONS_KEY)
            ),
        )

        if replicator is not None:
            replicator.on_state_update(self.apply_remote_state)
            replicator.on_refresh_request(self.load_accounts)

    @property
    def _accounts_key(self) -> str:
        return self._config.resource_key

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def accounts(self) -> list[Account]:
        return list(self._snapshot.accounts)

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._snapshot.transactions)

    def get_account(self, account_id: str) -> Account | None:
        return self._snapshot.find_account(account_id)

    def get_active_accounts(self) -> list[Account]:
        return [account for account in self._snapshot.accounts if account.active]

    def get_transactions_by_account(self, account_id: str) -> list[Transaction]:
        return [
            transaction
            for transaction in self._snapshot.transactions
            if transaction.account_id == account_id
        ]

    def get_linked_transactions(
        self,
        link_type: str,
        link_id: str,
    ) -> list[Transaction]:
        return [
            transaction
            for transaction in self._snapshot.transactions
            if transaction.linked_to is not None
            and transaction.linked_to.matches(link_type, link_id)
        ]

    def get_all_transactions(self) -> list[Transaction]:
        return self.transactions

    def set_error(self, message: str | None) -> None:
        self.error = message
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change.

        Returns:
            Callable[[], None]: Function removing the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load_accounts(self) -> list[Account]:
        """Refresh accounts from the API, or from the cache when offline.

        Accounts already known locally keep their ledger balance.
        """
        self.error = None
        self.is_loading = True
        try:
            result = await self._engine.load(
                self._config,
                fallback=self._account_records(self._snapshot.accounts),
            )
        finally:
            self.is_loading = False

        self._track_mode(result)
        snapshot = self._with_server_ids(self._snapshot)
        incoming = self._parse_accounts(result.data)
        accounts = carry_local_balances(incoming, snapshot.accounts)
        self._commit(replace(snapshot, accounts=accounts))
        self._logger.info(f"Ledger holds {len(accounts)} accounts ({self.sync_mode})")
        return self.accounts

    async def add_account(self, data: Mapping[str, Any]) -> Account:
        """Create an account; offline creations are queued for replay."""
        self.error = None
        body = self._account_body(data)
        body.setdefault("created_date", datetime.now(timezone.utc).isoformat())
        result = await self._engine.create(self._config, body)
        self._track_mode(result)

        created = Account.from_record({**body, **result.data})
        accounts = (created,) + tuple(
            account
            for account in self._snapshot.accounts
            if account.id != created.id
        )
        self._commit(replace(self._snapshot, accounts=accounts))
        return created

    async def update_account(
        self,
        account_id: str,
        updates: Mapping[str, Any],
    ) -> Account | None:
        """Patch an account. Balance edits are accepted as corrections.

        Returns:
            Account | None: The patched account, or None when the account is
            unknown or the API rejected the change.
        """
        self.error = None
        if self._snapshot.find_account(account_id) is None:
            self.error = ACCOUNT_NOT_FOUND
            self._notify()
            return None

        body = self._account_body(updates)
        result = await self._engine.update(self._config, account_id, body)
        self._track_mode(result)
        if self._failed_remotely(result):
            self.error = f"Could not update the account: {result.reason}"
            self._logger.warning(self.error)
            self._restore_cache()
            return None

        target_id = self._engine.resolve_id(self._accounts_key, account_id)
        snapshot = self._with_server_ids(self._snapshot)
        current = snapshot.find_account(target_id)
        if current is None:
            self._restore_cache()
            return None
        patched = Account.from_record(
            {**current.to_record(), **body, "id": current.id}
        )
        self._commit(
            replace(
                snapshot,
                accounts=tuple(
                    patched if account.id == current.id else account
                    for account in snapshot.accounts
                ),
            )
        )
        return patched

    async def delete_account(self, account_id: str) -> bool:
        """Delete an account together with its transactions."""
        self.error = None
        try:
            result = await self._engine.delete(self._config, account_id)
        except RemoteError as exc:
            self.error = f"Could not delete the account: {exc}"
            self._logger.warning(self.error)
            self._restore_cache()
            return False
        self._track_mode(result)

        removed = {
            account_id,
            self._engine.resolve_id(self._accounts_key, account_id),
        }
        snapshot = self._with_server_ids(self._snapshot)
        self._commit(
            LedgerSnapshot(
                accounts=tuple(
                    account
                    for account in snapshot.accounts
                    if account.id not in removed
                ),
                transactions=tuple(
                    transaction
                    for transaction in snapshot.transactions
                    if transaction.account_id not in removed
                ),
            )
        )
        return True

    async def toggle_active(self, account_id: str) -> Account | None:
        """Switch an account between active and inactive."""
        current = self._snapshot.find_account(account_id)
        if current is None:
            self.error = ACCOUNT_NOT_FOUND
            self._notify()
            return None
        return await self.update_account(account_id, {"active": not current.active})

    def add_transaction(self, data: Mapping[str, Any]) -> Transaction | None:
        """Record a movement and apply it to its account's balance.

        Returns:
            Transaction | None: The stored transaction, or None when the
            account is unknown or the data is invalid.
        """
        self.error = None
        snapshot = self._snapshot
        account_id = str(data.get("account_id") or "")
        if snapshot.find_account(account_id) is None:
            self.error = ACCOUNT_NOT_FOUND
            self._notify()
            return None
        try:
            transaction = Transaction.from_record(
                {
                    **data,
                    "id": data.get("id") or self._id_factory(),
                    "date": data.get("date") or self._today(),
                }
            )
        except (KeyError, TypeError, ValueError) as exc:
            self.error = f"Invalid transaction: {exc}"
            self._notify()
            return None

        self._commit(self._with_movements(snapshot, transaction))
        return transaction

    def transfer_between_accounts(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal | float | str,
        description: str = "",
        date: str | None = None,
        reference: str | None = None,
    ) -> bool:
        """Move money between two accounts as one atomic change.

        Both legs and both balance updates become visible together, or, when
        a precondition fails, nothing changes and ``error`` explains why.
        """
        snapshot = self._snapshot
        value = coerce_decimal(amount)
        rejection = validate_transfer(
            snapshot.find_account(from_account_id),
            snapshot.find_account(to_account_id),
            value,
            from_account_id,
            to_account_id,
        )
        if rejection is not None:
            self.error = rejection
            self._notify()
            return False

        stamp = self._id_factory()
        label = description.strip() or TRANSFER_DEFAULT_DESCRIPTION
        movement_date = date or self._today()
        shared_reference = reference or stamp
        outgoing = Transaction(
            id=f"{stamp}-out",
            account_id=from_account_id,
            type=TRANSACTION_EXPENSE,
            amount=value,
            description=f"{label} (Out)",
            date=movement_date,
            category=TRANSFER_CATEGORY,
            reference=shared_reference,
        )
        incoming = Transaction(
            id=f"{stamp}-in",
            account_id=to_account_id,
            type=TRANSACTION_INCOME,
            amount=value,
            description=f"{label} (In)",
            date=movement_date,
            category=TRANSFER_CATEGORY,
            reference=shared_reference,
        )
        self.error = None
        self._commit(self._with_movements(snapshot, incoming, outgoing))
        self._logger.info(
            f"Transferred {to_json_number(value)} from {from_account_id} "
            f"to {to_account_id}"
        )
        return True

    def add_linked_transaction(
        self,
        account_id: str,
        amount: Decimal | float | str,
        description: str,
        linked_to: LinkedRef | Mapping[str, Any],
    ) -> Transaction | None:
        """Record the movement caused by a sale, purchase or manual entry.

        A positive ``amount`` is income, a negative one an expense.
        """
        self.error = None
        snapshot = self._snapshot
        if snapshot.find_account(account_id) is None:
            self.error = ACCOUNT_NOT_FOUND
            self._notify()
            return None
        value = coerce_decimal(amount)
        if not value.is_finite() or value == 0:
            self.error = ZERO_AMOUNT
            self._notify()
            return None
        link = (
            linked_to
            if isinstance(linked_to, LinkedRef)
            else LinkedRef.from_record(dict(linked_to))
        )

        transaction = Transaction(
            id=self._id_factory(),
            account_id=account_id,
            type=TRANSACTION_INCOME if value > 0 else TRANSACTION_EXPENSE,
            amount=abs(value),
            description=description,
            date=self._today(),
            category=LINK_CATEGORIES[link.type],
            reference=link.number,
            linked_to=link,
        )
        self._commit(self._with_movements(snapshot, transaction))
        return transaction

    def remove_linked_transactions(self, link_type: str, link_id: str) -> int:
        """Drop every transaction linked to a document and undo its effect.

        Returns:
            int: Number of removed transactions.
        """
        snapshot = self._snapshot
        kept, removed, reversal = partition_linked(
            snapshot.transactions,
            link_type,
            link_id,
        )
        if not removed:
            return 0
        self._commit(
            LedgerSnapshot(
                accounts=apply_deltas(snapshot.accounts, reversal),
                transactions=kept,
            )
        )
        return len(removed)

    def update_transaction_account(
        self,
        transaction_id: str,
        new_account_id: str,
    ) -> bool:
        """Move a transaction, and its balance effect, to another account."""
        snapshot = self._snapshot
        transaction = snapshot.find_transaction(transaction_id)
        if transaction is None:
            self.error = TRANSACTION_NOT_FOUND
            self._notify()
            return False
        if transaction.account_id == new_account_id:
            self.error = None
            return True
        if snapshot.find_account(new_account_id) is None:
            self.error = ACCOUNT_NOT_FOUND
            self._notify()
            return False

        moved = replace(transaction, account_id=new_account_id)
        deltas = {
            transaction.account_id: -transaction.signed_amount,
            new_account_id: transaction.signed_amount,
        }
        self.error = None
        self._commit(
            LedgerSnapshot(
                accounts=apply_deltas(snapshot.accounts, deltas),
                transactions=tuple(
                    moved if item.id == transaction_id else item
                    for item in snapshot.transactions
                ),
            )
        )
        return True

    def apply_remote_state(self, payload: Mapping[str, Any]) -> None:
        """Replace in-memory state with a peer's broadcast.

        Nothing is persisted or re-broadcast: the sender already did both.
        """
        try:
            snapshot = LedgerSnapshot(
                accounts=tuple(
                    Account.from_record(record)
                    for record in payload.get("accounts") or []
                ),
                transactions=tuple(
                    Transaction.from_record(record)
                    for record in payload.get("transactions") or []
                ),
            )
        except (KeyError, TypeError, ValueError) as exc:
            self._logger.warning(f"Ignoring unreadable ledger broadcast: {exc}")
            return
        self._snapshot = snapshot
        self.sync_mode = payload.get("sync_mode") or self.sync_mode
        self._notify()

    def _with_movements(
        self,
        snapshot: LedgerSnapshot,
        *transactions: Transaction,
    ) -> LedgerSnapshot:
        return LedgerSnapshot(
            accounts=apply_deltas(snapshot.accounts, summarize_deltas(transactions)),
            transactions=tuple(transactions) + snapshot.transactions,
        )

    def _commit(self, snapshot: LedgerSnapshot) -> None:
        self._snapshot = self._with_server_ids(snapshot)
        self._persist()
        self._notify()
        if self._replicator is not None:
            self._replicator.publish_state(
                {**self._snapshot.to_payload(), "sync_mode": self.sync_mode}
            )

    def _persist(self) -> None:
        self._engine.replace_snapshot(
            self._accounts_key,
            self._account_records(self._snapshot.accounts),
        )
        self._engine.replace_snapshot(
            TRANSACTIONS_KEY,
            [transaction.to_record() for transaction in self._snapshot.transactions],
        )

    def _restore_cache(self) -> None:
        self._persist()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _track_mode(self, result: SyncResult) -> None:
        self.sync_mode = SYNC_MODE_ONLINE if result.is_ok else SYNC_MODE_OFFLINE

    @staticmethod
    def _failed_remotely(result: SyncResult) -> bool:
        return result.is_degraded and result.reason != OFFLINE_REASON

    def _with_server_ids(self, snapshot: LedgerSnapshot) -> LedgerSnapshot:
        key = self._accounts_key
        resolve = self._engine.resolve_id
        stale = any(
            resolve(key, account.id) != account.id for account in snapshot.accounts
        ) or any(
            resolve(key, transaction.account_id) != transaction.account_id
            for transaction in snapshot.transactions
        )
        if not stale:
            return snapshot
        accounts: list[Account] = []
        seen: set[str] = set()
        for account in snapshot.accounts:
            account_id = resolve(key, account.id)
            if account_id in seen:
                continue
            seen.add(account_id)
            accounts.append(replace(account, id=account_id))
        return LedgerSnapshot(
            accounts=tuple(accounts),
            transactions=tuple(
                replace(transaction, account_id=resolve(key, transaction.account_id))
                for transaction in snapshot.transactions
            ),
        )

    @staticmethod
    def _account_body(data: Mapping[str, Any]) -> Record:
        body = {key: value for key, value in data.items() if key != "id"}
        if "balance" in body:
            body["balance"] = to_json_number(coerce_decimal(body["balance"]))
        return body

    @staticmethod
    def _account_records(accounts: Iterable[Account]) -> list[Record]:
        return [account.to_record() for account in accounts]

    def _parse_accounts(self, records: Iterable[Mapping[str, Any]]) -> tuple[Account, ...]:
        accounts = []
        for record in records:
            try:
                accounts.append(Account.from_record(dict(record)))
            except (KeyError, TypeError, ValueError) as exc:
                self._logger.warning(f"Skipping unreadable account record: {exc}")
        return tuple(accounts)

    def _parse_transactions(
        self,
        records: Iterable[Mapping[str, Any]],
    ) -> tuple[Transaction, ...]:
        transactions = []
        for record in records:
            try:
                transactions.append(Transaction.from_record(dict(record)))
            except (KeyError, TypeError, ValueError) as exc:
                self._logger.warning(
                    f"Skipping unreadable transaction record: {exc}"
                )
        return tuple(transactions)


__all__ = [
    "LedgerStore",
    "TRANSACTIONS_KEY",
    "ACCOUNT_NOT_FOUND",
    "TRANSACTION_NOT_FOUND",
    "ZERO_AMOUNT",
]
