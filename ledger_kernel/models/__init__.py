"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.entry import Entry
from ledger_kernel.models.transfer import Transfer

__all__ = [
    "Account",
    "Entry",
    "Transfer",
]
