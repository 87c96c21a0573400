"""
CallContext -- cancellation and deadline for one kernel call.

Responsibility:
    Carries the caller's cancellation flag and optional deadline into the
    transaction boundary.  Every store round-trip (begin, each write, commit)
    calls ``check()`` first, so a cancelled or expired call rolls back
    instead of committing.

Architecture position:
    Kernel > Domain -- zero I/O.  The monotonic clock is the only time
    source; wall-clock changes never move a deadline.

Failure modes:
    - TransactionCancelledError from check() after cancel().
    - DeadlineExceededError from check() once the deadline has passed.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from ledger_kernel.exceptions import DeadlineExceededError, TransactionCancelledError


class CallContext:
    """
    Cancellation flag plus optional deadline.

    Contract:
        One context may be shared by the threads that serve one logical
        request; ``cancel()`` is safe to call from any of them.  A context
        never un-cancels.

    Usage:
        ctx = CallContext.with_timeout(2.0)
        store.transfer(ctx, 1, 2, 100)
    """

    def __init__(
        self,
        deadline: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            deadline: Absolute time on ``monotonic``'s scale, or None.
            monotonic: Clock used for deadline checks.
        """
        self._deadline = deadline
        self._monotonic = monotonic
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> CallContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> CallContext:
        """A context whose deadline is ``seconds`` from now."""
        return cls(deadline=monotonic() + seconds, monotonic=monotonic)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Cancel the call.  Idempotent."""
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline (may be negative), or None."""
        if self._deadline is None:
            return None
        return self._deadline - self._monotonic()

    def check(self) -> None:
        """
        Raise if the call must not continue.

        Raises:
            TransactionCancelledError: cancel() was called.
            DeadlineExceededError: the deadline has passed.
        """
        if self._cancelled.is_set():
            raise TransactionCancelledError()
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceededError(-remaining)
