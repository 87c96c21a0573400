"""Store layer - primitive queries and the transaction boundary."""

from ledger_kernel.store.queries import Queries
from ledger_kernel.store.transaction import TransactionBoundary, UnitOfWork

__all__ = [
    "Queries",
    "TransactionBoundary",
    "UnitOfWork",
]
