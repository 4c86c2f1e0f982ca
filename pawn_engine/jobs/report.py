"""Daily portfolio snapshot written to the log."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from pawn_engine.jobs.base import Clock
from pawn_engine.models import LoanStatus
from pawn_engine.scheduler.context import JobContext
from pawn_engine.store.base import LoanFilter, LoanStore

logger = logging.getLogger(__name__)


@dataclass
class PortfolioReport:
    report_date: date
    total_loans: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    outstanding_principal: Decimal = Decimal("0")
    late_fees_assessed: Decimal = Decimal("0")
    late_fees_outstanding: Decimal = Decimal("0")
    complete: bool = True


class DailyReportJob:
    """Summarize the loan book as of the end of the previous day."""

    def __init__(
        self,
        loan_store: LoanStore,
        branch_id: int = 0,
        page_size: int = 1000,
        clock: Clock = datetime.now,
    ) -> None:
        self.loan_store = loan_store
        self.branch_id = branch_id
        self.page_size = page_size
        self.clock = clock

    def __call__(self, ctx: JobContext) -> PortfolioReport:
        return self.generate_daily_report(ctx)

    def generate_daily_report(self, ctx: JobContext | None = None) -> PortfolioReport:
        ctx = ctx or JobContext.background("generate_daily_report")
        logger.info("Generating daily report...")

        report = PortfolioReport(report_date=self.clock().date() - timedelta(days=1))
        after_id: int | None = None
        while True:
            page = self.loan_store.list(
                LoanFilter(branch_id=self.branch_id, after_id=after_id, per_page=self.page_size)
            )
            if after_id is None:
                report.total_loans = page.total
            for loan in page.data:
                key = loan.status.value
                report.by_status[key] = report.by_status.get(key, 0) + 1
                if loan.status in (LoanStatus.ACTIVE, LoanStatus.OVERDUE):
                    report.outstanding_principal += loan.principal_remaining
                report.late_fees_assessed += loan.late_fee_amount
                report.late_fees_outstanding += loan.late_fee_remaining

            if not page.has_next or not page.data:
                break
            if ctx.cancelled:
                report.complete = False
                break
            after_id = page.data[-1].loan_id

        logger.info(
            "Daily report generated: date=%s total_loans=%d by_status=%s "
            "outstanding_principal=%s late_fees_outstanding=%s complete=%s",
            report.report_date.isoformat(),
            report.total_loans,
            report.by_status,
            report.outstanding_principal,
            report.late_fees_outstanding,
            report.complete,
        )
        return report
