"""
Module: ledger_kernel.db.pool
Responsibility: Connection pool whose checkout wait is bounded by the
    calling transaction's remaining time as well as by ``pool_timeout``.
Architecture position: Kernel > DB.  Used by db/engine.py; the transaction
    boundary sets the budget around connection checkout.

Invariants enforced:
    - The budget lives in a ContextVar, so concurrent checkouts on other
      threads keep their own limit.
    - With no budget set the pool behaves exactly like QueuePool.

Failure modes:
    - CheckoutDeadlineError (a sqlalchemy TimeoutError) when the wait ended
      because the budget ran out before ``pool_timeout`` did.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

_checkout_budget: ContextVar[float | None] = ContextVar(
    "ledger_checkout_budget", default=None
)


class CheckoutDeadlineError(PoolTimeoutError):
    """Pool wait cut short by the caller's deadline."""


@contextmanager
def checkout_budget(seconds: float | None) -> Iterator[None]:
    """Bound pool waits in this context to ``seconds`` (None = no bound)."""
    token = _checkout_budget.set(seconds)
    try:
        yield
    finally:
        _checkout_budget.reset(token)


class DeadlineQueuePool(QueuePool):
    """QueuePool that waits at most min(pool_timeout, current budget)."""

    @property
    def _timeout(self) -> float:
        budget = _checkout_budget.get()
        if budget is None:
            return self._configured_timeout
        return max(0.0, min(self._configured_timeout, budget))

    @_timeout.setter
    def _timeout(self, value: float) -> None:
        self._configured_timeout = value

    def _do_get(self):
        try:
            return super()._do_get()
        except CheckoutDeadlineError:
            raise
        except PoolTimeoutError as exc:
            budget = _checkout_budget.get()
            if budget is not None and budget < self._configured_timeout:
                raise CheckoutDeadlineError(str(exc)) from exc
            raise

    def recreate(self) -> "DeadlineQueuePool":
        # The replacement pool must inherit pool_timeout, not a budget.
        with checkout_budget(None):
            return super().recreate()
