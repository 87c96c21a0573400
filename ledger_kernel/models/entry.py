"""
Module: ledger_kernel.models.entry
Responsibility: ORM persistence for ledger entries -- one signed amount
    recorded against one account as the effect of one transfer.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Append-only: entries are inserted once and never updated or deleted.
    - Sign convention: negative amount = debit, positive amount = credit.
    - account_id references accounts.id (FK).
"""

from sqlalchemy import BigInteger, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, CreatedAtMixin
from ledger_kernel.db.types import MinorUnits


class Entry(CreatedAtMixin, Base):
    """
    One side of a transfer's effect on one account.

    Contract:
        Created exactly once per (transfer, account) pair, inside the same
        transaction as its Transfer.
    """

    __tablename__ = "entries"

    __table_args__ = (
        Index("idx_entry_account", "account_id"),
    )

    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id"),
        nullable=False,
    )

    # Signed; may be negative
    amount: Mapped[MinorUnits] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Entry {self.id} account={self.account_id} amount={self.amount}>"
