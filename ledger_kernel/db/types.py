"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases for ledger column types, so every
    model uses identical definitions for amounts and currency codes.
Architecture position: Kernel > DB.  May be imported by models/ and domain/.
"""

from typing import Annotated

from sqlalchemy import BigInteger, String

# Signed amount in minor currency units (cents).  Negative = debit.
MinorUnits = Annotated[int, BigInteger]

# ISO 4217 currency code (e.g., "USD", "EUR")
Currency = Annotated[str, String(3)]

# Account holder name
Owner = Annotated[str, String(255)]
