"""
Queries -- the primitive per-row operation surface.

Responsibility:
    Single-statement reads and writes against accounts, transfers and
    entries, bound to one SQLAlchemy ``Session``.  Every write is a flush
    inside the session's current transaction; Queries never commits or rolls
    back.  The transaction boundary (store/transaction.py) owns that.

Architecture position:
    Kernel > Store.  May import from models/, domain/, exceptions.
    The same class serves as the "non-transactional" handle (one operation
    per boundary call, see Store) and the transaction-scoped handle handed
    to a unit of work.

Invariants enforced:
    - Flush-only: no commit(), no rollback().
    - Context-aware: ``ctx.check()`` runs before every round-trip.
    - Returns frozen records, never ORM instances.
    - Entries are append-only: there is no update or delete method.

Failure modes:
    - WriteError wrapping the driver's SQLAlchemyError on any INSERT failure
      (FK violation, connection drop).  The session must then be rolled back.
    - DeadlineExceededError instead of WriteError when the INSERT failed
      after the deadline passed (SQLite busy timeout, PostgreSQL
      statement_timeout).
    - AccountNotFoundError / TransferNotFoundError / EntryNotFoundError from
      the get_* lookups.
    - TransactionCancelledError / DeadlineExceededError from the context.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.domain.context import CallContext
from ledger_kernel.domain.records import AccountRecord, EntryRecord, TransferRecord
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    DeadlineExceededError,
    EntryNotFoundError,
    TransferNotFoundError,
    WriteError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.entry import Entry
from ledger_kernel.models.transfer import Transfer

logger = get_logger("store.queries")

DEFAULT_PAGE_SIZE = 100


class Queries:
    """
    Primitive operations over one session.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist rows within the active transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT touch ``Account.balance``.
    """

    def __init__(self, session: Session, ctx: CallContext | None = None):
        self.session = session
        self.ctx = ctx or CallContext.background()

    def _insert(self, operation: str, row):
        self.ctx.check()
        try:
            self.session.add(row)
            self.session.flush()
            # server_default columns (created_at) may need a round-trip
            self.session.refresh(row)
        except SQLAlchemyError as exc:
            remaining = self.ctx.remaining()
            if remaining is not None and remaining <= 0:
                # Lock wait or statement timeout cut short by the deadline.
                logger.warning(
                    "write_deadline_exceeded",
                    extra={"operation": operation, "error": str(exc)},
                )
                raise DeadlineExceededError(-remaining) from exc
            logger.warning(
                "write_failed",
                extra={"operation": operation, "error": str(exc)},
            )
            raise WriteError(operation, exc) from exc
        return row

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, owner: str, currency: str, balance: int = 0) -> AccountRecord:
        row = self._insert(
            "create_account",
            Account(owner=owner, balance=balance, currency=currency),
        )
        return AccountRecord.from_model(row)

    def get_account(self, account_id: int) -> AccountRecord:
        self.ctx.check()
        row = self.session.get(Account, account_id)
        if row is None:
            raise AccountNotFoundError(account_id)
        return AccountRecord.from_model(row)

    def list_accounts(
        self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> list[AccountRecord]:
        self.ctx.check()
        stmt = select(Account).order_by(Account.id).limit(limit).offset(offset)
        return [AccountRecord.from_model(r) for r in self.session.scalars(stmt)]

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def create_transfer(
        self, from_account_id: int, to_account_id: int, amount: int
    ) -> TransferRecord:
        row = self._insert(
            "create_transfer",
            Transfer(
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
            ),
        )
        return TransferRecord.from_model(row)

    def get_transfer(self, transfer_id: int) -> TransferRecord:
        self.ctx.check()
        row = self.session.get(Transfer, transfer_id)
        if row is None:
            raise TransferNotFoundError(transfer_id)
        return TransferRecord.from_model(row)

    def list_transfers(
        self,
        from_account_id: int | None = None,
        to_account_id: int | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[TransferRecord]:
        """
        Transfers where either side matches, ordered by id.

        With both ids None, every transfer is returned (paged).
        """
        self.ctx.check()
        stmt = select(Transfer)
        conditions = []
        if from_account_id is not None:
            conditions.append(Transfer.from_account_id == from_account_id)
        if to_account_id is not None:
            conditions.append(Transfer.to_account_id == to_account_id)
        if conditions:
            stmt = stmt.where(or_(*conditions))
        stmt = stmt.order_by(Transfer.id).limit(limit).offset(offset)
        return [TransferRecord.from_model(r) for r in self.session.scalars(stmt)]

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def create_entry(self, account_id: int, amount: int) -> EntryRecord:
        row = self._insert(
            "create_entry",
            Entry(account_id=account_id, amount=amount),
        )
        return EntryRecord.from_model(row)

    def get_entry(self, entry_id: int) -> EntryRecord:
        self.ctx.check()
        row = self.session.get(Entry, entry_id)
        if row is None:
            raise EntryNotFoundError(entry_id)
        return EntryRecord.from_model(row)

    def list_entries(
        self,
        account_id: int,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[EntryRecord]:
        self.ctx.check()
        stmt = (
            select(Entry)
            .where(Entry.account_id == account_id)
            .order_by(Entry.id)
            .limit(limit)
            .offset(offset)
        )
        return [EntryRecord.from_model(r) for r in self.session.scalars(stmt)]

    def entry_total(self, account_id: int) -> int:
        """Sum of all entry amounts for an account (0 when none)."""
        self.ctx.check()
        stmt = select(func.coalesce(func.sum(Entry.amount), 0)).where(
            Entry.account_id == account_id
        )
        return int(self.session.scalar(stmt))
