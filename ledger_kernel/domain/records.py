"""
Records -- immutable row snapshots and transfer value objects.

Responsibility:
    Defines the frozen dataclasses returned by the query surface
    (AccountRecord, EntryRecord, TransferRecord), the input bundle for a
    transfer (TransferParams), and its combined output (TransferResult).

Architecture position:
    Kernel > Domain -- zero I/O.  from_model() class methods are boundary
    converters invoked only from store/queries.py, so live ORM instances
    never escape the transaction that loaded them.

Serialization:
    Every record has ``to_dict()`` with stable snake_case keys and ISO-8601
    timestamps.  TransferResult serializes as
    ``{"transfer": ..., "from_entry": ..., "to_entry": ...}``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.entry import Entry as EntryModel
    from ledger_kernel.models.transfer import Transfer as TransferModel


def _serialize(record: Any) -> dict[str, Any]:
    data = asdict(record)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


@dataclass(frozen=True)
class AccountRecord:
    """Snapshot of one account row."""

    id: int
    owner: str
    balance: int
    currency: str
    created_at: datetime

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountRecord:
        return cls(
            id=model.id,
            owner=model.owner,
            balance=model.balance,
            currency=model.currency,
            created_at=model.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class EntryRecord:
    """
    Snapshot of one ledger entry.

    ``amount`` is signed: negative for the debited account, positive for
    the credited one.
    """

    id: int
    account_id: int
    amount: int
    created_at: datetime

    @classmethod
    def from_model(cls, model: EntryModel) -> EntryRecord:
        return cls(
            id=model.id,
            account_id=model.account_id,
            amount=model.amount,
            created_at=model.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class TransferRecord:
    """Snapshot of one transfer row."""

    id: int
    from_account_id: int
    to_account_id: int
    amount: int
    created_at: datetime

    @classmethod
    def from_model(cls, model: TransferModel) -> TransferRecord:
        return cls(
            id=model.id,
            from_account_id=model.from_account_id,
            to_account_id=model.to_account_id,
            amount=model.amount,
            created_at=model.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class TransferParams:
    """Input parameters of a transfer."""

    from_account_id: int
    to_account_id: int
    amount: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TransferResult:
    """
    Everything one committed transfer created.

    Contract:
        Only ever built from rows that were written in the same transaction;
        a TransferResult is never returned for a transfer that rolled back.

    Guarantees:
        - transfer.amount == -from_entry.amount == to_entry.amount
        - from_entry.account_id == transfer.from_account_id
        - to_entry.account_id == transfer.to_account_id
    """

    transfer: TransferRecord
    from_entry: EntryRecord
    to_entry: EntryRecord

    def to_dict(self) -> dict[str, Any]:
        return {
            "transfer": self.transfer.to_dict(),
            "from_entry": self.from_entry.to_dict(),
            "to_entry": self.to_entry.to_dict(),
        }
