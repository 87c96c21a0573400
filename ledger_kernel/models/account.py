"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for accounts -- the owners of ledger entries.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - owner and currency are non-null.
    - balance is a signed integer in minor units.  The kernel reads account
      identities but never writes balance; balances derive from entries.

Failure modes:
    - AccountNotFoundError when a lookup references a non-existent account.
    - IntegrityError (wrapped as WriteError) when an entry or transfer
      references a non-existent account.
"""

from sqlalchemy import Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, CreatedAtMixin
from ledger_kernel.db.types import Currency, MinorUnits, Owner


class Account(CreatedAtMixin, Base):
    """
    A single account holding money in one currency.

    Contract:
        Accounts are created and mutated by collaborators outside the
        transfer core.  The transfer core only references ``id``.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_account_owner", "owner"),
    )

    owner: Mapped[Owner] = mapped_column(nullable=False)

    balance: Mapped[MinorUnits] = mapped_column(nullable=False, default=0)

    currency: Mapped[Currency] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.owner} {self.balance} {self.currency}>"
