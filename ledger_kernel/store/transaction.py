"""
TransactionBoundary -- all-or-nothing execution of a unit of work.

Responsibility:
    Opens one transaction, hands a transaction-scoped ``Queries`` to the
    caller's unit of work, and then issues exactly one of commit or
    rollback.  It knows nothing about transfers; any multi-step write can
    run through it.

Architecture position:
    Kernel > Store.  Imports Queries, CallContext and the exception
    hierarchy.  This is the only place in the kernel that calls
    ``session.commit()`` or ``session.rollback()``.

Invariants enforced:
    - One session per call.  The session is created here, passed explicitly
      to the unit of work, and closed before ``execute`` returns.  It is
      never stored on the boundary or in module state.
    - Exactly one of {commit, rollback} per opened transaction, on every
      exit path, including KeyboardInterrupt/SystemExit.
    - Cancellation or an expired deadline before commit results in rollback.
    - A context deadline bounds every wait: the pool checkout, then on
      PostgreSQL ``SET LOCAL statement_timeout`` and on SQLite
      ``PRAGMA busy_timeout``, so a blocked statement cannot outlive the call.
    - KeyboardInterrupt/SystemExit always propagate as themselves, even when
      the rollback they trigger fails.

Failure modes:
    - TransactionStartError: the store could not begin (pool exhausted,
      connection refused).
    - DeadlineExceededError: the deadline ran out while waiting for a
      pooled connection.
    - Any exception from the unit of work, re-raised unchanged after a
      successful rollback.
    - RollbackError: rollback failed; carries ``cause`` and
      ``rollback_cause``.  For an interpreter exit the original is
      re-raised instead, with the rollback failure added as a note.
    - CommitError: commit failed after the unit of work succeeded.
"""

from __future__ import annotations

import math
from typing import Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.db.engine import is_postgres, is_sqlite
from ledger_kernel.db.pool import CheckoutDeadlineError, checkout_budget
from ledger_kernel.domain.context import CallContext
from ledger_kernel.exceptions import (
    CommitError,
    DeadlineExceededError,
    RollbackError,
    TransactionStartError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.store.queries import Queries

logger = get_logger("store.transaction")

T = TypeVar("T")

UnitOfWork = Callable[[Queries], T]


class TransactionBoundary:
    """
    Runs units of work atomically against one session factory.

    Contract:
        ``execute(ctx, unit_of_work)`` returns whatever the unit of work
        returns, after a successful commit.  If the unit of work raises,
        nothing it wrote is committed.

    Guarantees:
        - Thread-safe: each call takes its own session (and pooled
          connection) from the factory.
        - No retry.  A transient conflict surfaces to the caller, who may
          re-invoke the whole unit of work.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def execute(self, ctx: CallContext | None, unit_of_work: UnitOfWork[T]) -> T:
        """
        Execute ``unit_of_work`` in a single transaction.

        Args:
            ctx: Cancellation/deadline context (None = background).
            unit_of_work: Callable receiving a transaction-scoped Queries.

        Returns:
            The unit of work's return value.
        """
        ctx = ctx or CallContext.background()
        ctx.check()

        session = self._session_factory()
        try:
            self._begin(session, ctx)
            logger.debug("transaction_started")

            try:
                result = unit_of_work(Queries(session, ctx))
                ctx.check()
            except BaseException as exc:
                self._rollback(session, exc)
                raise

            self._commit(session)
            return result
        finally:
            session.close()

    @staticmethod
    def _begin(session: Session, ctx: CallContext) -> None:
        try:
            session.begin()
            with checkout_budget(ctx.remaining()):
                connection = session.connection()
            remaining = ctx.remaining()
            if remaining is not None:
                timeout_ms = max(1, math.ceil(remaining * 1000))
                if is_postgres(connection):
                    connection.exec_driver_sql(f"SET LOCAL statement_timeout = {timeout_ms}")
                elif is_sqlite(connection):
                    # Checkout restores the configured value for the next user.
                    connection.exec_driver_sql(f"PRAGMA busy_timeout = {timeout_ms}")
        except CheckoutDeadlineError as exc:
            overrun = max(0.0, -(ctx.remaining() or 0.0))
            logger.warning(
                "transaction_start_deadline_exceeded",
                extra={"deadline_overrun": overrun},
            )
            raise DeadlineExceededError(overrun) from exc
        except SQLAlchemyError as exc:
            logger.error(
                "transaction_start_failed",
                extra={"error": str(exc)},
            )
            raise TransactionStartError(exc) from exc

    @staticmethod
    def _rollback(session: Session, cause: BaseException) -> None:
        try:
            session.rollback()
        except Exception as rb_exc:
            logger.error(
                "transaction_rollback_failed",
                extra={
                    "error_type": type(cause).__name__,
                    "rollback_error_type": type(rb_exc).__name__,
                },
            )
            if not isinstance(cause, Exception):
                # KeyboardInterrupt / SystemExit keep propagating as themselves.
                cause.add_note(f"rollback failed: {type(rb_exc).__name__}: {rb_exc}")
                return
            raise RollbackError(cause, rb_exc) from cause
        logger.warning(
            "transaction_rolled_back",
            exc_info=cause,
            extra={"error_type": type(cause).__name__},
        )

    @staticmethod
    def _commit(session: Session) -> None:
        try:
            session.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "transaction_commit_failed",
                exc_info=True,
            )
            raise CommitError(exc) from exc
        logger.debug("transaction_committed")
