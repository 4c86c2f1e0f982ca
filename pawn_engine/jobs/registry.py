"""Default job set of the pawnshop worker."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from pawn_engine.config import EngineConfig, JobsConfig
from pawn_engine.jobs.base import Clock
from pawn_engine.jobs.interest import DailyInterestJob
from pawn_engine.jobs.late_fees import LateFeeEngine, LateFeeResult
from pawn_engine.jobs.overdue import OverdueProcessor
from pawn_engine.jobs.reminders import ReminderNotifier
from pawn_engine.jobs.report import DailyReportJob
from pawn_engine.models import NotificationChannel
from pawn_engine.notifications.base import NotificationSender
from pawn_engine.scheduler import JobContext, ScheduledJob, Scheduler
from pawn_engine.store.base import CustomerStore, ItemStore, LoanStore

logger = logging.getLogger(__name__)


@dataclass
class EngineJobs:
    """The processors behind the scheduled jobs, wired to shared stores."""

    overdue: OverdueProcessor
    late_fees: LateFeeEngine
    notifier: ReminderNotifier
    interest: DailyInterestJob
    report: DailyReportJob

    @classmethod
    def build(
        cls,
        loan_store: LoanStore,
        item_store: ItemStore,
        customer_store: CustomerStore,
        sender: NotificationSender,
        config: EngineConfig | None = None,
        clock: Clock = datetime.now,
    ) -> "EngineJobs":
        config = config or EngineConfig()
        branch_id = config.scheduler.branch_id
        page_size = config.scheduler.page_size
        return cls(
            overdue=OverdueProcessor(loan_store, item_store, branch_id=branch_id, clock=clock),
            late_fees=LateFeeEngine(loan_store, branch_id=branch_id, clock=clock),
            notifier=ReminderNotifier(
                loan_store,
                customer_store,
                sender,
                branch_id=branch_id,
                page_size=page_size,
                channel=NotificationChannel(config.notifications.channel),
                clock=clock,
            ),
            interest=DailyInterestJob(loan_store, branch_id=branch_id, page_size=page_size, clock=clock),
            report=DailyReportJob(loan_store, branch_id=branch_id, page_size=page_size, clock=clock),
        )

    def overdue_then_late_fees(self, ctx: JobContext) -> LateFeeResult:
        """Bring statuses current, then accrue fees.

        The fee engine only looks at loans already ``overdue``, so running the
        overdue processor first in the same invocation keeps a loan that just
        went past due from missing a fee cycle.
        """
        self.overdue.process_overdue_loans(ctx)
        if ctx.cancelled:
            logger.warning("Skipping late fee calculation: job cancelled after overdue pass")
            return LateFeeResult(cancelled=True)
        return self.late_fees.calculate_late_fees(ctx)


def register_default_jobs(
    scheduler: Scheduler,
    jobs: EngineJobs,
    config: JobsConfig | None = None,
) -> None:
    """Register the worker's standard jobs with their configured cadence."""
    config = config or JobsConfig()
    handlers = {
        "process_overdue_loans": jobs.overdue.process_overdue_loans,
        "calculate_late_fees": jobs.overdue_then_late_fees,
        "calculate_daily_interest": jobs.interest.calculate_daily_interest,
        "send_due_date_reminders": jobs.notifier.send_due_date_reminders,
        "send_overdue_notifications": jobs.notifier.send_overdue_notifications,
        "generate_daily_report": jobs.report.generate_daily_report,
    }
    for name, handler in handlers.items():
        settings = config.get(name)
        scheduler.add_job(
            ScheduledJob(
                name=name,
                schedule=settings.schedule,
                handler=handler,
                enabled=settings.enabled,
            )
        )
