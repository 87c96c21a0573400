"""
TransferService -- atomic funds transfer between two accounts.

Responsibility:
    Records one Transfer and its two offsetting Entries as a single unit of
    work run through the TransactionBoundary.

Architecture position:
    Kernel > Services.  Depends on store/transaction.py for atomicity and on
    store/queries.py for the three INSERTs.

Invariants enforced:
    - Either the transfer and both entries are committed, or none of them.
    - from_entry.amount == -amount, to_entry.amount == +amount.
    - No deduplication: two identical calls create two transfers.

Non-goals:
    - Does NOT validate accounts, currencies or sufficient funds.
    - Does NOT update Account.balance and does NOT lock the two accounts in
      any order.  Balances derive from the entries table.
    - Does NOT retry on transient conflicts; re-invoke the whole call.

Failure modes:
    - WriteError from whichever INSERT failed (the earlier ones are rolled
      back with it).
    - TransactionStartError / CommitError / RollbackError from the boundary.
    - TransactionCancelledError / DeadlineExceededError from the context.

Usage:
    service = TransferService(TransactionBoundary(session_factory))
    result = service.transfer(CallContext.with_timeout(2.0), 1, 2, 100)
    result.to_dict()  # {"transfer": ..., "from_entry": ..., "to_entry": ...}
"""

from __future__ import annotations

from typing import Callable

from ledger_kernel.domain.context import CallContext
from ledger_kernel.domain.records import TransferParams, TransferResult
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.store.queries import Queries
from ledger_kernel.store.transaction import TransactionBoundary

logger = get_logger("services.transfer")


def transfer_unit_of_work(params: TransferParams) -> Callable[[Queries], TransferResult]:
    """Build the three-write unit of work for ``params``."""

    def apply(queries: Queries) -> TransferResult:
        transfer = queries.create_transfer(
            from_account_id=params.from_account_id,
            to_account_id=params.to_account_id,
            amount=params.amount,
        )
        from_entry = queries.create_entry(
            account_id=params.from_account_id,
            amount=-params.amount,
        )
        to_entry = queries.create_entry(
            account_id=params.to_account_id,
            amount=params.amount,
        )
        return TransferResult(
            transfer=transfer,
            from_entry=from_entry,
            to_entry=to_entry,
        )

    return apply


class TransferService:
    """
    Performs money transfers through a TransactionBoundary.

    Contract:
        ``transfer`` either returns a TransferResult describing exactly what
        was committed, or raises and commits nothing.
    """

    def __init__(self, boundary: TransactionBoundary):
        self._boundary = boundary

    def transfer(
        self,
        ctx: CallContext | None,
        from_account_id: int,
        to_account_id: int,
        amount: int,
    ) -> TransferResult:
        """
        Move ``amount`` minor units from one account to another.

        Preconditions (caller-validated): amount >= 0, both accounts exist.
        """
        return self.transfer_tx(
            ctx,
            TransferParams(
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
            ),
        )

    def transfer_tx(self, ctx: CallContext | None, params: TransferParams) -> TransferResult:
        """Same as ``transfer`` but takes the parameter bundle."""
        with LogContext.bind(operation="transfer"):
            logger.debug("transfer_started", extra=params.to_dict())
            result = self._boundary.execute(ctx, transfer_unit_of_work(params))
            logger.info(
                "transfer_completed",
                extra={
                    "transfer_id": result.transfer.id,
                    "from_account_id": params.from_account_id,
                    "to_account_id": params.to_account_id,
                    "amount": params.amount,
                    "from_entry_id": result.from_entry.id,
                    "to_entry_id": result.to_entry.id,
                },
            )
            return result
