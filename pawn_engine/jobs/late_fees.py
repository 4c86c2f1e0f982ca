"""Late-fee accrual for overdue loans."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pawn_engine.jobs.base import BatchResult, Clock, to_cents
from pawn_engine.lifecycle import accrues_late_fees, compute_late_fee, days_overdue
from pawn_engine.logging import log_context
from pawn_engine.models import Loan
from pawn_engine.scheduler.context import JobContext
from pawn_engine.store.base import LoanStore

logger = logging.getLogger(__name__)

# Changes at or below this are float/rounding noise, not a new fee
FEE_EPSILON = Decimal("0.01")


@dataclass
class LateFeeResult(BatchResult):
    """Counters for one late-fee run."""

    updated: int = 0
    unchanged: int = 0
    total_increment: Decimal = Decimal("0")


def apply_late_fee(loan: Loan, now: datetime) -> Decimal | None:
    """Bring ``loan``'s fee fields up to date in place.

    ``late_fee_amount`` is replaced by the recomputed total, while
    ``late_fee_remaining`` only moves by the delta so that partial payments
    already applied against the fee survive.

    Returns
    -------
    Decimal | None
        The increment applied, or None when nothing changed.
    """
    if not accrues_late_fees(loan.status):
        return None

    days = days_overdue(loan, now)
    if days <= 0:
        return None

    fee = to_cents(compute_late_fee(loan, days))
    if fee <= loan.late_fee_amount + FEE_EPSILON:
        return None

    increment = fee - loan.late_fee_amount
    loan.late_fee_amount = fee
    loan.late_fee_remaining += increment
    return increment


class LateFeeEngine:
    """Accrue the daily penalty on every loan currently ``overdue``.

    Loans in any other status are left alone, including ``active`` loans
    already past due: the overdue processor owns that transition and is
    expected to run first (see ``register_default_jobs``).
    """

    def __init__(
        self,
        loan_store: LoanStore,
        branch_id: int = 0,
        clock: Clock = datetime.now,
    ) -> None:
        self.loan_store = loan_store
        self.branch_id = branch_id
        self.clock = clock

    def __call__(self, ctx: JobContext) -> LateFeeResult:
        return self.calculate_late_fees(ctx)

    def calculate_late_fees(self, ctx: JobContext | None = None) -> LateFeeResult:
        ctx = ctx or JobContext.background("calculate_late_fees")
        logger.info("Calculating late fees...")

        loans = self.loan_store.get_overdue_loans(self.branch_id)
        now = self.clock()
        result = LateFeeResult()

        for position, loan in enumerate(loans):
            if ctx.cancelled:
                result.cancelled = True
                logger.warning("Late fee calculation cancelled: remaining=%d", len(loans) - position)
                break

            result.scanned += 1
            if not accrues_late_fees(loan.status) or days_overdue(loan, now) <= 0:
                result.skipped += 1
                continue

            previous = (loan.late_fee_amount, loan.late_fee_remaining)
            increment = apply_late_fee(loan, now)
            if increment is None:
                result.unchanged += 1
                continue

            try:
                self.loan_store.record_late_fee(loan.loan_id, loan.late_fee_amount, increment)
            except Exception as e:
                loan.late_fee_amount, loan.late_fee_remaining = previous
                result.failed += 1
                logger.error(
                    "Failed to update late fees: loan_id=%s loan_number=%s error=%s",
                    loan.loan_id,
                    loan.loan_number,
                    e,
                )
                continue

            result.updated += 1
            result.total_increment += increment
            logger.debug(
                "Late fee accrued: loan_id=%s loan_number=%s total=%s increment=%s",
                loan.loan_id,
                loan.loan_number,
                loan.late_fee_amount,
                increment,
                extra=log_context(
                    loan_id=loan.loan_id,
                    loan_number=loan.loan_number,
                    late_fee_amount=loan.late_fee_amount,
                    increment=increment,
                ),
            )

        logger.info(
            "Late fee calculation completed: updated=%d unchanged=%d skipped=%d failed=%d",
            result.updated,
            result.unchanged,
            result.skipped,
            result.failed,
        )
        return result
