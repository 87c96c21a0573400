"""
Tests for TransactionBoundary: commit, rollback and error propagation.

Faults are injected by patching ``Session`` methods, the same way the
crash tests patch services.
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ledger_kernel.domain.context import CallContext
from ledger_kernel.exceptions import (
    CommitError,
    DeadlineExceededError,
    RollbackError,
    TransactionCancelledError,
    TransactionStartError,
    WriteError,
)
from ledger_kernel.models import Account, Entry, Transfer
from ledger_kernel.store.transaction import TransactionBoundary


class BusinessRuleViolation(Exception):
    """Raised by a unit of work to abort it."""


def _db_error(statement: str) -> OperationalError:
    return OperationalError(statement, {}, Exception("server closed the connection"))


@pytest.fixture
def boundary(session_factory) -> TransactionBoundary:
    return TransactionBoundary(session_factory)


class TestCommit:

    def test_returns_unit_of_work_result(self, boundary, ctx, count_rows):
        account = boundary.execute(ctx, lambda q: q.create_account("dave", "USD"))
        assert account.id is not None
        assert count_rows(Account) == 1

    def test_none_context_means_background(self, boundary, count_rows):
        boundary.execute(None, lambda q: q.create_account("erin", "USD"))
        assert count_rows(Account) == 1

    def test_committed_rows_visible_to_new_session(self, boundary, ctx, session_factory):
        account = boundary.execute(ctx, lambda q: q.create_account("frank", "GBP"))
        with session_factory() as s:
            assert s.get(Account, account.id).owner == "frank"

    def test_each_call_uses_a_fresh_session(self, boundary, ctx):
        seen = []
        boundary.execute(ctx, lambda q: seen.append(q.session))
        boundary.execute(ctx, lambda q: seen.append(q.session))
        assert seen[0] is not seen[1]


class TestRollback:

    def test_unit_of_work_error_reraised_unchanged(self, boundary, ctx, count_rows, two_accounts):
        a, b = two_accounts
        error = BusinessRuleViolation("limit exceeded")

        def work(q):
            q.create_transfer(a.id, b.id, 10)
            q.create_entry(a.id, -10)
            raise error

        with pytest.raises(BusinessRuleViolation) as exc_info:
            boundary.execute(ctx, work)

        assert exc_info.value is error
        assert count_rows(Transfer) == 0
        assert count_rows(Entry) == 0

    def test_write_error_rolls_back_earlier_writes(self, boundary, ctx, count_rows, two_accounts):
        a, _ = two_accounts

        def work(q):
            q.create_entry(a.id, -10)
            q.create_entry(999_999, 10)

        with pytest.raises(WriteError):
            boundary.execute(ctx, work)
        assert count_rows(Entry) == 0

    def test_keyboard_interrupt_rolls_back(self, boundary, ctx, count_rows):
        def work(q):
            q.create_account("gina", "USD")
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            boundary.execute(ctx, work)
        assert count_rows(Account) == 0

    def test_rollback_logged(self, boundary, ctx, captured_logs):
        def work(q):
            raise BusinessRuleViolation("nope")

        with pytest.raises(BusinessRuleViolation):
            boundary.execute(ctx, work)

        rolled_back = [r for r in captured_logs() if r["message"] == "transaction_rolled_back"]
        assert len(rolled_back) == 1
        assert rolled_back[0]["error_type"] == "BusinessRuleViolation"
        assert rolled_back[0]["level"] == "WARNING"

    def test_rollback_failure_carries_both_causes(self, boundary, ctx, count_rows):
        original = BusinessRuleViolation("insert rejected")
        rollback_problem = _db_error("ROLLBACK")

        def work(q):
            q.create_account("hank", "USD")
            raise original

        with patch.object(Session, "rollback", side_effect=rollback_problem):
            with pytest.raises(RollbackError) as exc_info:
                boundary.execute(ctx, work)

        err = exc_info.value
        assert err.cause is original
        assert err.rollback_cause is rollback_problem
        assert err.__cause__ is original
        assert "insert rejected" in str(err)
        # The session is closed without commit, so nothing persists.
        assert count_rows(Account) == 0

    def test_interrupt_survives_failed_rollback(self, boundary, ctx, count_rows):
        def work(q):
            q.create_account("oscar", "USD")
            raise KeyboardInterrupt

        with patch.object(Session, "rollback", side_effect=_db_error("ROLLBACK")):
            with pytest.raises(KeyboardInterrupt) as exc_info:
                boundary.execute(ctx, work)

        assert not isinstance(exc_info.value, RollbackError)
        assert any("rollback failed" in note for note in exc_info.value.__notes__)
        assert count_rows(Account) == 0


class TestCommitFailure:

    def test_commit_error_wraps_driver_error(self, boundary, ctx, count_rows):
        failure = _db_error("COMMIT")

        with patch.object(Session, "commit", side_effect=failure):
            with pytest.raises(CommitError) as exc_info:
                boundary.execute(ctx, lambda q: q.create_account("ivy", "USD"))

        assert exc_info.value.cause is failure
        assert exc_info.value.code == "COMMIT_FAILED"
        assert count_rows(Account) == 0

    def test_commit_failure_does_not_also_roll_back_explicitly(self, boundary, ctx):
        with patch.object(Session, "commit", side_effect=_db_error("COMMIT")):
            with patch.object(Session, "rollback") as rollback:
                with pytest.raises(CommitError):
                    boundary.execute(ctx, lambda q: q.create_account("jon", "USD"))
        rollback.assert_not_called()


class TestStartFailure:

    def test_connection_failure_is_start_error(self, boundary, ctx):
        failure = _db_error("connect")
        calls = []

        with patch.object(Session, "connection", side_effect=failure):
            with pytest.raises(TransactionStartError) as exc_info:
                boundary.execute(ctx, calls.append)

        assert exc_info.value.cause is failure
        assert calls == []

    def test_start_failure_never_commits_or_rolls_back(self, boundary, ctx):
        with patch.object(Session, "connection", side_effect=_db_error("connect")):
            with patch.object(Session, "commit") as commit, \
                    patch.object(Session, "rollback") as rollback:
                with pytest.raises(TransactionStartError):
                    boundary.execute(ctx, lambda q: None)
        commit.assert_not_called()
        rollback.assert_not_called()


class TestCancellation:

    def test_cancelled_before_start_opens_nothing(self, session_factory):
        ctx = CallContext.background()
        ctx.cancel()
        calls = []

        with patch.object(Session, "begin") as begin:
            with pytest.raises(TransactionCancelledError):
                TransactionBoundary(session_factory).execute(ctx, calls.append)

        begin.assert_not_called()
        assert calls == []

    def test_cancel_during_unit_of_work_rolls_back(self, boundary, count_rows, two_accounts):
        a, b = two_accounts
        ctx = CallContext.background()

        def work(q):
            q.create_transfer(a.id, b.id, 10)
            ctx.cancel()
            q.create_entry(a.id, -10)

        with pytest.raises(TransactionCancelledError):
            boundary.execute(ctx, work)
        assert count_rows(Transfer) == 0
        assert count_rows(Entry) == 0

    def test_cancel_after_last_write_still_rolls_back(self, boundary, count_rows):
        ctx = CallContext.background()

        def work(q):
            q.create_account("kim", "USD")
            ctx.cancel()

        with pytest.raises(TransactionCancelledError):
            boundary.execute(ctx, work)
        assert count_rows(Account) == 0

    def test_deadline_passing_mid_work_rolls_back(self, boundary, count_rows):
        now = [0.0]
        ctx = CallContext.with_timeout(1.0, monotonic=lambda: now[0])

        def work(q):
            q.create_account("lee", "USD")
            now[0] = 1.5

        with pytest.raises(DeadlineExceededError) as exc_info:
            boundary.execute(ctx, work)

        assert exc_info.value.deadline_overrun == pytest.approx(0.5)
        assert count_rows(Account) == 0

    def test_deadline_already_passed(self, boundary):
        ctx = CallContext.with_timeout(-1.0)
        with pytest.raises(DeadlineExceededError):
            boundary.execute(ctx, lambda q: q.create_account("max", "USD"))
