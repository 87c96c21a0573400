"""Pure domain values for the ledger kernel (no I/O)."""

from ledger_kernel.domain.context import CallContext
from ledger_kernel.domain.records import (
    AccountRecord,
    EntryRecord,
    TransferParams,
    TransferRecord,
    TransferResult,
)

__all__ = [
    "AccountRecord",
    "CallContext",
    "EntryRecord",
    "TransferParams",
    "TransferRecord",
    "TransferResult",
]
