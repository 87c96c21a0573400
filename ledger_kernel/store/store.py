"""
Store -- the kernel's public entry point.

Responsibility:
    Bundles a session factory with the TransactionBoundary and the
    TransferService, and offers one-operation convenience calls (each run in
    its own transaction through the same boundary).

Architecture position:
    Kernel > Store facade.  Callers (API layer, CLI, tests) depend on this
    class; nothing inside the kernel does.

Usage:
    store = Store.from_settings(load_settings())
    a = store.create_account(ctx, owner="alice", currency="USD")
    b = store.create_account(ctx, owner="bob", currency="USD")
    result = store.transfer(ctx, a.id, b.id, 100)
"""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.config import LedgerSettings
from ledger_kernel.db.engine import get_session_factory, init_engine_from_settings
from ledger_kernel.domain.context import CallContext
from ledger_kernel.domain.records import (
    AccountRecord,
    EntryRecord,
    TransferParams,
    TransferRecord,
    TransferResult,
)
from ledger_kernel.services.transfer_service import TransferService
from ledger_kernel.store.queries import DEFAULT_PAGE_SIZE
from ledger_kernel.store.transaction import TransactionBoundary, UnitOfWork

T = TypeVar("T")


class Store:
    """
    Ledger store over one session factory.

    Contract:
        Holds no session and no transaction between calls; every method
        opens and finishes its own transaction.  Safe to share across
        threads.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory
        self._boundary = TransactionBoundary(session_factory)
        self._transfers = TransferService(self._boundary)

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> Store:
        """Initialize engine and logging from settings and build a Store."""
        init_engine_from_settings(settings)
        return cls(get_session_factory())

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    def execute_in_transaction(
        self, ctx: CallContext | None, unit_of_work: UnitOfWork[T]
    ) -> T:
        """Run a multi-step unit of work atomically.  See TransactionBoundary."""
        return self._boundary.execute(ctx, unit_of_work)

    def transfer(
        self,
        ctx: CallContext | None,
        from_account_id: int,
        to_account_id: int,
        amount: int,
    ) -> TransferResult:
        """Record a transfer and its two entries atomically."""
        return self._transfers.transfer(ctx, from_account_id, to_account_id, amount)

    def transfer_tx(self, ctx: CallContext | None, params: TransferParams) -> TransferResult:
        return self._transfers.transfer_tx(ctx, params)

    # ------------------------------------------------------------------
    # Single-operation conveniences
    # ------------------------------------------------------------------

    def create_account(
        self,
        ctx: CallContext | None,
        owner: str,
        currency: str,
        balance: int = 0,
    ) -> AccountRecord:
        return self._boundary.execute(
            ctx, lambda q: q.create_account(owner=owner, currency=currency, balance=balance)
        )

    def get_account(self, ctx: CallContext | None, account_id: int) -> AccountRecord:
        return self._boundary.execute(ctx, lambda q: q.get_account(account_id))

    def list_accounts(
        self,
        ctx: CallContext | None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[AccountRecord]:
        return self._boundary.execute(ctx, lambda q: q.list_accounts(limit, offset))

    def get_transfer(self, ctx: CallContext | None, transfer_id: int) -> TransferRecord:
        return self._boundary.execute(ctx, lambda q: q.get_transfer(transfer_id))

    def list_transfers(
        self,
        ctx: CallContext | None,
        from_account_id: int | None = None,
        to_account_id: int | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[TransferRecord]:
        return self._boundary.execute(
            ctx,
            lambda q: q.list_transfers(from_account_id, to_account_id, limit, offset),
        )

    def get_entry(self, ctx: CallContext | None, entry_id: int) -> EntryRecord:
        return self._boundary.execute(ctx, lambda q: q.get_entry(entry_id))

    def list_entries(
        self,
        ctx: CallContext | None,
        account_id: int,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[EntryRecord]:
        return self._boundary.execute(
            ctx, lambda q: q.list_entries(account_id, limit, offset)
        )

    def entry_total(self, ctx: CallContext | None, account_id: int) -> int:
        """Net of all entries for an account; the derived balance movement."""
        return self._boundary.execute(ctx, lambda q: q.entry_total(account_id))
