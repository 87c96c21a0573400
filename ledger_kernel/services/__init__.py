"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.transfer_service import TransferService, transfer_unit_of_work

__all__ = [
    "TransferService",
    "transfer_unit_of_work",
]
