"""
Module: ledger_kernel.models.transfer
Responsibility: ORM persistence for transfers -- the logical record of moving
    an amount from one account to another.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Immutable after creation.
    - Always committed together with exactly two entries (one -amount against
      from_account_id, one +amount against to_account_id).  This is enforced
      by TransferService running all three inserts in one transaction, not by
      the schema.
    - amount > 0 and from_account_id != to_account_id are assumed, not
      checked here; validation belongs to the caller.
"""

from sqlalchemy import BigInteger, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, CreatedAtMixin
from ledger_kernel.db.types import MinorUnits


class Transfer(CreatedAtMixin, Base):
    """Intent to move ``amount`` minor units between two accounts."""

    __tablename__ = "transfers"

    __table_args__ = (
        Index("idx_transfer_from_account", "from_account_id"),
        Index("idx_transfer_to_account", "to_account_id"),
        Index("idx_transfer_account_pair", "from_account_id", "to_account_id"),
    )

    from_account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id"),
        nullable=False,
    )

    to_account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id"),
        nullable=False,
    )

    amount: Mapped[MinorUnits] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Transfer {self.id} {self.from_account_id}->{self.to_account_id} "
            f"amount={self.amount}>"
        )
