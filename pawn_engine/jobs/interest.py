"""Daily interest accrual for active loans.

Registered but disabled by default: the pawnshop's standard product fixes
interest once at origination.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pawn_engine.jobs.base import BatchResult, Clock, to_cents
from pawn_engine.models import Loan, LoanStatus
from pawn_engine.scheduler.context import JobContext
from pawn_engine.store.base import LoanFilter, LoanStore

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal(365)


@dataclass
class InterestResult(BatchResult):
    updated: int = 0
    total_interest: Decimal = Decimal("0")


def daily_interest(loan: Loan) -> Decimal:
    """One day of interest on the principal at the loan's annual rate."""
    return to_cents(loan.loan_amount * loan.interest_rate / Decimal(100) / DAYS_PER_YEAR)


class DailyInterestJob:
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

    def __call__(self, ctx: JobContext) -> InterestResult:
        return self.calculate_daily_interest(ctx)

    def calculate_daily_interest(self, ctx: JobContext | None = None) -> InterestResult:
        ctx = ctx or JobContext.background("calculate_daily_interest")
        logger.info("Calculating daily interest...")

        # Single page, bounded by the page-size cap
        page = self.loan_store.list(
            LoanFilter(status=LoanStatus.ACTIVE, branch_id=self.branch_id, per_page=self.page_size)
        )
        if page.has_next:
            logger.warning(
                "Active loans exceed page size, remainder left for next run: total=%d page_size=%d",
                page.total,
                self.page_size,
            )

        result = InterestResult()
        for loan in page.data:
            if ctx.cancelled:
                result.cancelled = True
                break

            result.scanned += 1
            interest = daily_interest(loan)
            if interest <= 0:
                result.skipped += 1
                continue

            try:
                self.loan_store.add_interest(loan.loan_id, interest)
            except Exception as e:
                result.failed += 1
                logger.error(
                    "Failed to update loan interest: loan_id=%s loan_number=%s error=%s",
                    loan.loan_id,
                    loan.loan_number,
                    e,
                )
                continue

            loan.interest_amount += interest
            loan.interest_remaining += interest
            result.updated += 1
            result.total_interest += interest

        logger.info(
            "Daily interest calculation completed: loans_processed=%d total_interest=%s",
            result.updated,
            result.total_interest,
        )
        return result
