"""Overdue marking and collateral confiscation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from pawn_engine.jobs.base import BatchResult, Clock
from pawn_engine.lifecycle import should_confiscate, should_mark_overdue, should_skip
from pawn_engine.logging import log_context
from pawn_engine.models import ItemStatus, Loan, LoanStatus
from pawn_engine.scheduler.context import JobContext
from pawn_engine.store.base import ItemStore, LoanStore

logger = logging.getLogger(__name__)


@dataclass
class OverdueResult(BatchResult):
    """Counters for one overdue processing run."""

    marked_overdue: int = 0
    confiscated: int = 0
    item_update_failures: int = 0


class OverdueProcessor:
    """Move past-due loans to ``overdue`` and forfeit them after the grace period.

    A loan goes ``active -> overdue`` first and only then, once
    ``due_date + grace_period_days`` (23:59:59) has passed,
    ``overdue -> confiscated``. Both steps may happen in one run when the
    grace period is already over. On confiscation the collateral is put up
    for sale; that write is best-effort and a failure never rolls back the
    loan, leaving the item to be reconciled later.

    Parameters
    ----------
    loan_store : LoanStore
        Source of past-due loans and target of status writes.
    item_store : ItemStore
        Target of collateral status writes.
    branch_id : int
        Branch to process, ``0`` for all branches.
    clock : Clock
        Returns the current local time.
    """

    def __init__(
        self,
        loan_store: LoanStore,
        item_store: ItemStore,
        branch_id: int = 0,
        clock: Clock = datetime.now,
    ) -> None:
        self.loan_store = loan_store
        self.item_store = item_store
        self.branch_id = branch_id
        self.clock = clock

    def __call__(self, ctx: JobContext) -> OverdueResult:
        return self.process_overdue_loans(ctx)

    def process_overdue_loans(self, ctx: JobContext | None = None) -> OverdueResult:
        """Re-evaluate every past-due loan once.

        Raises whatever the initial read raises: without the loan list there
        is nothing to process and the run is retried on the next tick.
        """
        ctx = ctx or JobContext.background("process_overdue_loans")
        logger.info("Processing overdue loans...")

        loans = self.loan_store.get_overdue_loans(self.branch_id)
        now = self.clock()
        result = OverdueResult()

        for position, loan in enumerate(loans):
            if ctx.cancelled:
                result.cancelled = True
                logger.warning(
                    "Overdue processing cancelled: remaining=%d", len(loans) - position
                )
                break

            result.scanned += 1
            if should_skip(loan):
                result.skipped += 1
                continue

            if should_mark_overdue(loan, now):
                if not self._set_status(loan, LoanStatus.OVERDUE, result):
                    continue
                result.marked_overdue += 1

            if should_confiscate(loan, now):
                if not self._set_status(loan, LoanStatus.CONFISCATED, result):
                    continue
                result.confiscated += 1
                self._release_collateral(loan, result)

        logger.info(
            "Overdue loan processing completed: marked_overdue=%d confiscated=%d "
            "skipped=%d failed=%d item_update_failures=%d",
            result.marked_overdue,
            result.confiscated,
            result.skipped,
            result.failed,
            result.item_update_failures,
        )
        return result

    def _set_status(self, loan: Loan, status: LoanStatus, result: OverdueResult) -> bool:
        try:
            self.loan_store.update_status(loan.loan_id, status)
        except Exception as e:
            result.failed += 1
            logger.error(
                "Failed to mark loan as %s: loan_id=%s loan_number=%s error=%s",
                status.value,
                loan.loan_id,
                loan.loan_number,
                e,
            )
            return False

        logger.debug(
            "Loan status changed: loan_id=%s loan_number=%s %s -> %s",
            loan.loan_id,
            loan.loan_number,
            loan.status.value,
            status.value,
            extra=log_context(
                loan_id=loan.loan_id, loan_number=loan.loan_number, status=status.value
            ),
        )
        loan.status = status
        return True

    def _release_collateral(self, loan: Loan, result: OverdueResult) -> None:
        try:
            self.item_store.update_status(loan.item_id, ItemStatus.FOR_SALE)
        except Exception as e:
            # Loan stays confiscated; the item needs manual reconciliation
            result.item_update_failures += 1
            logger.warning(
                "Loan confiscated but collateral not marked for sale: "
                "loan_id=%s loan_number=%s item_id=%s error=%s",
                loan.loan_id,
                loan.loan_number,
                loan.item_id,
                e,
            )
            return

        logger.info(
            "Loan confiscated, collateral for sale: loan_id=%s loan_number=%s item_id=%s",
            loan.loan_id,
            loan.loan_number,
            loan.item_id,
            extra=log_context(
                loan_id=loan.loan_id,
                loan_number=loan.loan_number,
                item_id=loan.item_id,
                status=LoanStatus.CONFISCATED.value,
            ),
        )
