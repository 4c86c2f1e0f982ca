"""Tests for late fee accrual."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable
from unittest.mock import MagicMock

import pytest

from pawn_engine.exceptions import PersistenceError
from pawn_engine.jobs import LateFeeEngine, apply_late_fee
from pawn_engine.models import Loan, LoanStatus
from pawn_engine.store import InMemoryPawnStore, LoanStore


class TestApplyLateFee:
    """Tests for the in-place fee update."""

    def test_first_assessment(self, make_loan: Callable[..., Loan], now: datetime) -> None:
        loan = make_loan(status=LoanStatus.OVERDUE, due_date=date(2025, 3, 10))

        increment = apply_late_fee(loan, now)

        assert increment == Decimal("100.00")
        assert loan.late_fee_amount == Decimal("100.00")
        assert loan.late_fee_remaining == Decimal("100.00")

    def test_remaining_moves_by_delta(self, make_loan: Callable[..., Loan], now: datetime) -> None:
        # Q40 assessed earlier, Q30 of it already paid
        loan = make_loan(
            status=LoanStatus.OVERDUE,
            due_date=date(2025, 3, 10),
            late_fee_amount=Decimal("40.00"),
            late_fee_remaining=Decimal("10.00"),
        )

        increment = apply_late_fee(loan, now)

        assert increment == Decimal("60.00")
        assert loan.late_fee_amount == Decimal("100.00")
        assert loan.late_fee_remaining == Decimal("70.00")

    def test_change_within_epsilon_ignored(
        self, make_loan: Callable[..., Loan], now: datetime
    ) -> None:
        loan = make_loan(
            status=LoanStatus.OVERDUE,
            due_date=date(2025, 3, 10),
            late_fee_amount=Decimal("99.99"),
            late_fee_remaining=Decimal("99.99"),
        )

        assert apply_late_fee(loan, now) is None
        assert loan.late_fee_amount == Decimal("99.99")

    def test_fee_rounded_to_cents(self, make_loan: Callable[..., Loan], now: datetime) -> None:
        loan = make_loan(
            status=LoanStatus.OVERDUE,
            due_date=date(2025, 3, 12),
            loan_amount=Decimal("333.33"),
            late_fee_rate=Decimal("1.5"),
        )

        apply_late_fee(loan, now)

        # 333.33 * 1.5% * 3 days = 14.99985
        assert loan.late_fee_amount == Decimal("15.00")

    @pytest.mark.parametrize(
        "status", [LoanStatus.ACTIVE, LoanStatus.CONFISCATED, LoanStatus.PAID, LoanStatus.DEFAULTED]
    )
    def test_only_overdue_loans_accrue(
        self, make_loan: Callable[..., Loan], now: datetime, status: LoanStatus
    ) -> None:
        loan = make_loan(status=status, due_date=date(2025, 3, 10))
        assert apply_late_fee(loan, now) is None
        assert loan.late_fee_amount == Decimal("0")

    def test_no_fee_on_due_date(self, make_loan: Callable[..., Loan], now: datetime) -> None:
        loan = make_loan(status=LoanStatus.OVERDUE, due_date=date(2025, 3, 15))
        assert apply_late_fee(loan, now) is None


class TestLateFeeEngine:
    """Tests for LateFeeEngine against the in-memory store."""

    def test_accrues_for_overdue_loans(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, status=LoanStatus.OVERDUE, due_date=date(2025, 3, 10))
        add_loan(2, due_date=date(2025, 3, 10))
        add_loan(3, status=LoanStatus.CONFISCATED, due_date=date(2025, 1, 1))

        result = LateFeeEngine(store, clock=clock).calculate_late_fees()

        assert store.loans[1].late_fee_amount == Decimal("100.00")
        assert store.loans[1].late_fee_remaining == Decimal("100.00")
        assert store.loans[2].late_fee_amount == Decimal("0")
        assert store.loans[3].late_fee_amount == Decimal("0")
        assert result.updated == 1
        assert result.skipped == 1
        assert result.total_increment == Decimal("100.00")

    def test_rerun_same_day_changes_nothing(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, status=LoanStatus.OVERDUE, due_date=date(2025, 3, 10))
        engine = LateFeeEngine(store, clock=clock)

        engine.calculate_late_fees()
        second = engine.calculate_late_fees()

        assert second.updated == 0
        assert second.unchanged == 1
        assert store.loans[1].late_fee_remaining == Decimal("100.00")

    def test_next_day_adds_one_day_of_fees(
        self, store: InMemoryPawnStore, add_loan: Callable[..., Loan], now: datetime
    ) -> None:
        add_loan(1, status=LoanStatus.OVERDUE, due_date=date(2025, 3, 10))
        current = [now]
        store.clock = lambda: current[0]
        engine = LateFeeEngine(store, clock=lambda: current[0])

        engine.calculate_late_fees()
        current[0] = datetime(2025, 3, 16, 10, 0, 0)
        result = engine.calculate_late_fees()

        assert result.total_increment == Decimal("20.00")
        assert store.loans[1].late_fee_amount == Decimal("120.00")

    def test_update_failure_restores_loan(
        self, make_loan: Callable[..., Loan], clock: Callable[[], datetime]
    ) -> None:
        loan = make_loan(
            status=LoanStatus.OVERDUE,
            due_date=date(2025, 3, 10),
            late_fee_amount=Decimal("40.00"),
            late_fee_remaining=Decimal("40.00"),
        )
        loan_store = MagicMock(spec=LoanStore)
        loan_store.get_overdue_loans.return_value = [loan]
        loan_store.record_late_fee.side_effect = PersistenceError("could not serialize access")

        result = LateFeeEngine(loan_store, clock=clock).calculate_late_fees()

        assert result.failed == 1
        assert result.updated == 0
        assert loan.late_fee_amount == Decimal("40.00")
        assert loan.late_fee_remaining == Decimal("40.00")

    def test_payment_between_read_and_write_survives(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(
            1,
            status=LoanStatus.OVERDUE,
            due_date=date(2025, 3, 10),
            late_fee_amount=Decimal("40.00"),
            late_fee_remaining=Decimal("40.00"),
        )
        read_overdue = store.get_overdue_loans

        def read_then_pay(branch_id: int = 0) -> list[Loan]:
            loans = read_overdue(branch_id)
            # Customer settles the Q40 fee while the job holds its copy
            store.loans[1].late_fee_remaining -= Decimal("40.00")
            store.loans[1].amount_paid += Decimal("40.00")
            return loans

        store.get_overdue_loans = read_then_pay

        result = LateFeeEngine(store, clock=clock).calculate_late_fees()

        stored = store.loans[1]
        assert result.updated == 1
        assert stored.late_fee_amount == Decimal("100.00")
        assert stored.late_fee_remaining == Decimal("60.00")
        assert stored.amount_paid == Decimal("40.00")

    def test_accrual_logged_with_loan_context(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        clock: Callable[[], datetime],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        add_loan(1, status=LoanStatus.OVERDUE, due_date=date(2025, 3, 10))

        with caplog.at_level(logging.DEBUG, logger="pawn_engine.jobs.late_fees"):
            LateFeeEngine(store, clock=clock).calculate_late_fees()

        accrued = [r for r in caplog.records if r.getMessage().startswith("Late fee accrued")]
        assert len(accrued) == 1
        assert accrued[0].context["loan_id"] == 1
        assert accrued[0].context["increment"] == Decimal("100.00")
