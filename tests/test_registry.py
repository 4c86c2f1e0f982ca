"""Tests for default job registration."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable

from pawn_engine.config import EngineConfig, JobSettings, JobsConfig
from pawn_engine.jobs.registry import EngineJobs, register_default_jobs
from pawn_engine.models import ItemStatus, Loan, LoanStatus
from pawn_engine.notifications import NotificationSender
from pawn_engine.scheduler import JobContext, Scheduler
from pawn_engine.store import InMemoryPawnStore

DEFAULT_JOBS = [
    "process_overdue_loans",
    "calculate_late_fees",
    "calculate_daily_interest",
    "send_due_date_reminders",
    "send_overdue_notifications",
    "generate_daily_report",
]


def _engine_jobs(
    store: InMemoryPawnStore, sender: NotificationSender, clock: Callable[[], datetime]
) -> EngineJobs:
    return EngineJobs.build(store, store.item_store, store, sender, EngineConfig(), clock=clock)


class TestRegisterDefaultJobs:
    """Tests for register_default_jobs."""

    def test_registers_all_jobs(
        self,
        store: InMemoryPawnStore,
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        scheduler = Scheduler()
        register_default_jobs(scheduler, _engine_jobs(store, sender, clock))

        stats = scheduler.stats()
        assert list(stats) == DEFAULT_JOBS
        assert stats["process_overdue_loans"]["interval"] == timedelta(hours=1)
        assert stats["calculate_late_fees"]["interval"] == timedelta(hours=6)
        assert stats["send_due_date_reminders"]["interval"] == timedelta(days=1)
        assert not stats["calculate_daily_interest"]["enabled"]
        assert stats["generate_daily_report"]["enabled"]

    def test_uses_configured_schedules(
        self,
        store: InMemoryPawnStore,
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        config = JobsConfig()
        config.jobs["process_overdue_loans"] = JobSettings("every:5m")
        config.jobs["calculate_daily_interest"] = JobSettings("daily", enabled=True)
        scheduler = Scheduler()

        register_default_jobs(scheduler, _engine_jobs(store, sender, clock), config)

        stats = scheduler.stats()
        assert stats["process_overdue_loans"]["interval"] == timedelta(minutes=5)
        assert stats["calculate_daily_interest"]["enabled"]


class TestOverdueThenLateFees:
    """Tests for the combined overdue and late fee job."""

    def test_loan_gets_fees_on_the_run_it_becomes_overdue(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, due_date=date(2025, 3, 10), grace_period_days=30)
        jobs = _engine_jobs(store, sender, clock)

        result = jobs.overdue_then_late_fees(JobContext.background())

        assert store.loans[1].status == LoanStatus.OVERDUE
        assert store.loans[1].late_fee_amount == Decimal("100.00")
        assert result.updated == 1

    def test_late_fee_engine_alone_skips_active_loans(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, due_date=date(2025, 3, 10))
        jobs = _engine_jobs(store, sender, clock)

        jobs.late_fees.calculate_late_fees()

        assert store.loans[1].late_fee_amount == Decimal("0")

    def test_confiscated_loans_stop_accruing(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, due_date=date(2025, 1, 1), grace_period_days=10, status=LoanStatus.OVERDUE)
        jobs = _engine_jobs(store, sender, clock)

        jobs.overdue_then_late_fees(JobContext.background())

        assert store.loans[1].status == LoanStatus.CONFISCATED
        assert store.items[1].status == ItemStatus.FOR_SALE
        assert store.loans[1].late_fee_amount == Decimal("0")

    def test_cancelled_context(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, status=LoanStatus.OVERDUE, due_date=date(2025, 3, 10))
        ctx = JobContext("calculate_late_fees")
        ctx.cancel()

        result = _engine_jobs(store, sender, clock).overdue_then_late_fees(ctx)

        assert result.cancelled
        assert store.loans[1].late_fee_amount == Decimal("0")

    def test_scheduled_run_through_scheduler(
        self,
        store: InMemoryPawnStore,
        add_loan: Callable[..., Loan],
        sender: NotificationSender,
        clock: Callable[[], datetime],
    ) -> None:
        add_loan(1, due_date=date(2025, 3, 18))
        scheduler = Scheduler()
        register_default_jobs(scheduler, _engine_jobs(store, sender, clock))

        run = scheduler.run_job("send_due_date_reminders")

        assert run.success
        assert len(sender.requests) == 1
