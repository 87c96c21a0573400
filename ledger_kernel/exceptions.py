"""
Typed Exception Hierarchy for the Ledger Kernel.

Every error raised by the kernel is a typed subclass of ``LedgerKernelError``
with a ``code`` class attribute (machine-readable, API-safe) and structured
attributes instead of information packed into the message string.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ConfigurationError
    |
    +-- TransactionError
    |   +-- TransactionStartError
    |   +-- WriteError
    |   +-- RollbackError
    |   +-- CommitError
    |   +-- TransactionCancelledError
    |   +-- DeadlineExceededError
    |
    +-- NotFoundError
        +-- AccountNotFoundError
        +-- TransferNotFoundError
        +-- EntryNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Settings file or env value invalid
----------------|-----------------------------|-----------------------------------------
Transaction     | TRANSACTION_START_FAILED    | Store could not open a transaction
                | WRITE_FAILED                | Primitive INSERT failed (constraint, I/O)
                | ROLLBACK_FAILED             | Rollback failed after a unit-of-work error
                | COMMIT_FAILED               | Commit failed after all writes succeeded
                | TRANSACTION_CANCELLED       | Call context cancelled mid-flight
                | DEADLINE_EXCEEDED           | Call context deadline passed
----------------|-----------------------------|-----------------------------------------
Lookup          | ACCOUNT_NOT_FOUND           | Account ID doesn't exist
                | TRANSFER_NOT_FOUND          | Transfer ID doesn't exist
                | ENTRY_NOT_FOUND             | Entry ID doesn't exist

===============================================================================
HANDLING PATTERNS
===============================================================================

1. A transfer either returns a complete result or raises:

    try:
        result = store.transfer(ctx, from_id, to_id, amount)
    except WriteError as e:
        log.warning("transfer rejected", extra={"operation": e.operation})
    except CommitError:
        # Outcome unknown to the kernel; caller decides whether to retry.
        ...

2. Rollback failure keeps both causes:

    except RollbackError as e:
        original = e.cause
        rollback_problem = e.rollback_cause

3. The kernel never retries. Callers that want retry-on-conflict re-invoke
   the whole operation.
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


class ConfigurationError(LedgerKernelError):
    """Settings could not be loaded or failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")


# Transaction-related exceptions


class TransactionError(LedgerKernelError):
    """Base exception for transaction boundary errors."""

    code: str = "TRANSACTION_ERROR"


class TransactionStartError(TransactionError):
    """The store could not begin a transaction (pool exhausted, store down)."""

    code: str = "TRANSACTION_START_FAILED"

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Could not begin transaction: {cause}")


class WriteError(TransactionError):
    """A primitive write failed inside a unit of work."""

    code: str = "WRITE_FAILED"

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class RollbackError(TransactionError):
    """
    Rollback failed after the unit of work had already failed.

    Both failures are kept as separate attributes: ``cause`` is the error
    that triggered the rollback, ``rollback_cause`` is the error raised by
    the rollback itself.
    """

    code: str = "ROLLBACK_FAILED"

    def __init__(self, cause: BaseException, rollback_cause: BaseException):
        self.cause = cause
        self.rollback_cause = rollback_cause
        super().__init__(f"tx err: {cause}, rb err: {rollback_cause}")


class CommitError(TransactionError):
    """
    Commit failed after every write succeeded.

    The store's outcome is indeterminate from the kernel's point of view and
    is treated as not applied.
    """

    code: str = "COMMIT_FAILED"

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Commit failed: {cause}")


class TransactionCancelledError(TransactionError):
    """The call context was cancelled before the transaction finished."""

    code: str = "TRANSACTION_CANCELLED"

    def __init__(self):
        super().__init__("Call context cancelled")


class DeadlineExceededError(TransactionError):
    """The call context deadline passed before the transaction finished."""

    code: str = "DEADLINE_EXCEEDED"

    def __init__(self, deadline_overrun: float):
        self.deadline_overrun = deadline_overrun
        super().__init__(
            f"Call context deadline exceeded by {deadline_overrun:.3f}s"
        )


# Lookup exceptions


class NotFoundError(LedgerKernelError):
    """Base exception for missing rows."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given ID was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class TransferNotFoundError(NotFoundError):
    """Transfer with given ID was not found."""

    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_id: int):
        self.transfer_id = transfer_id
        super().__init__(f"Transfer not found: {transfer_id}")


class EntryNotFoundError(NotFoundError):
    """Entry with given ID was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")
