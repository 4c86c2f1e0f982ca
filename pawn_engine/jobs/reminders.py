"""Due-date reminders and overdue escalation notices."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator

from pawn_engine.jobs.base import BatchResult, Clock
from pawn_engine.lifecycle import days_overdue, days_until_confiscation, days_until_due
from pawn_engine.models import (
    Customer,
    Loan,
    LoanStatus,
    NotificationChannel,
    NotificationType,
    SendNotificationRequest,
)
from pawn_engine.notifications.base import NotificationSender
from pawn_engine.scheduler.context import JobContext
from pawn_engine.store.base import CustomerStore, LoanFilter, LoanStore

logger = logging.getLogger(__name__)

# Exact day counts before the due date that trigger a reminder.
# Not "<=": a loan 2 or 5 days out gets nothing.
REMINDER_LEAD_DAYS = frozenset({1, 3, 7})


@dataclass
class NotificationResult(BatchResult):
    """Counters for one notification run."""

    sent: int = 0
    suppressed: int = 0


class ReminderNotifier:
    """Tell customers about upcoming due dates and pending confiscations.

    Sends at most one notification per qualifying loan per run. Nothing is
    deduplicated across runs; that is the sender's concern.

    Parameters
    ----------
    loan_store : LoanStore
        Source of active and overdue loans.
    customer_store : CustomerStore
        Used to skip loans whose customer cannot be resolved.
    sender : NotificationSender
        Outbound notification capability.
    branch_id : int
        Branch to process, ``0`` for all branches.
    page_size : int
        Page-size cap on loan listings.
    channel : NotificationChannel
        Channel requested for every notification.
    currency : str
        Currency symbol used in messages.
    clock : Clock
        Returns the current local time.
    """

    def __init__(
        self,
        loan_store: LoanStore,
        customer_store: CustomerStore,
        sender: NotificationSender,
        branch_id: int = 0,
        page_size: int = 1000,
        channel: NotificationChannel = NotificationChannel.SMS,
        currency: str = "Q",
        clock: Clock = datetime.now,
    ) -> None:
        self.loan_store = loan_store
        self.customer_store = customer_store
        self.sender = sender
        self.branch_id = branch_id
        self.page_size = page_size
        self.channel = channel
        self.currency = currency
        self.clock = clock

    def send_due_date_reminders(self, ctx: JobContext | None = None) -> NotificationResult:
        """Remind owners of active loans due in exactly 1, 3 or 7 days."""
        ctx = ctx or JobContext.background("send_due_date_reminders")
        logger.info("Sending due date reminders...")

        today = self.clock().date()
        result = NotificationResult()

        for loan in self._active_loans():
            if ctx.cancelled:
                result.cancelled = True
                logger.warning("Due date reminders cancelled: sent=%d", result.sent)
                break

            result.scanned += 1
            days = days_until_due(loan, today)
            if days not in REMINDER_LEAD_DAYS:
                result.skipped += 1
                continue

            if self._resolve_customer(loan) is None:
                result.skipped += 1
                continue

            request = SendNotificationRequest(
                customer_id=loan.customer_id,
                type=NotificationType.LOAN_DUE_REMINDER,
                title="Loan Due Date Reminder",
                message=(
                    f"Your loan #{loan.loan_number} is due in {days} day(s). "
                    f"Outstanding amount: {self._money(loan.remaining_balance())}"
                ),
                channel=self.channel,
                reference_type="loan",
                reference_id=loan.loan_id,
            )
            if self._dispatch(loan, request, result):
                logger.info(
                    "Sent due date reminder: loan_id=%s customer_id=%s days_until_due=%d",
                    loan.loan_id,
                    loan.customer_id,
                    days,
                )

        logger.info(
            "Due date reminder processing completed: reminders_sent=%d skipped=%d failed=%d",
            result.sent,
            result.skipped,
            result.failed,
        )
        return result

    def send_overdue_notifications(self, ctx: JobContext | None = None) -> NotificationResult:
        """Warn owners of overdue loans, urgently once confiscation is due."""
        ctx = ctx or JobContext.background("send_overdue_notifications")
        logger.info("Sending overdue notifications...")

        loans = self.loan_store.get_overdue_loans(self.branch_id)
        now = self.clock()
        result = NotificationResult()

        for loan in loans:
            if ctx.cancelled:
                result.cancelled = True
                logger.warning("Overdue notifications cancelled: sent=%d", result.sent)
                break

            result.scanned += 1
            if loan.status != LoanStatus.OVERDUE:
                result.skipped += 1
                continue

            if self._resolve_customer(loan) is None:
                result.skipped += 1
                continue

            request = self._overdue_request(loan, now)
            self._dispatch(loan, request, result)

        logger.info(
            "Overdue notification processing completed: notifications_sent=%d skipped=%d failed=%d",
            result.sent,
            result.skipped,
            result.failed,
        )
        return result

    def _overdue_request(self, loan: Loan, now: datetime) -> SendNotificationRequest:
        overdue = days_overdue(loan, now)
        remaining = days_until_confiscation(loan, now)
        owed = self._money(loan.remaining_balance())

        if remaining > 0:
            title = "Overdue Loan"
            message = (
                f"Your loan #{loan.loan_number} is {overdue} day(s) overdue. "
                f"Amount owed: {owed}. Please pay within {remaining} day(s) "
                "to keep your item."
            )
        else:
            title = "Urgent: Item Confiscation Today"
            message = (
                f"Your loan #{loan.loan_number} is {overdue} day(s) overdue and its "
                f"grace period ends today. Pay {owed} today or your item "
                "will be confiscated."
            )

        return SendNotificationRequest(
            customer_id=loan.customer_id,
            type=NotificationType.LOAN_OVERDUE,
            title=title,
            message=message,
            channel=self.channel,
            reference_type="loan",
            reference_id=loan.loan_id,
        )

    def _active_loans(self) -> Iterator[Loan]:
        """Page through active loans by id. A failed page read aborts the run.

        Paging resumes after the last id seen, so loans that leave ``active``
        while the run is in progress do not shift later loans off a page.
        """
        after_id: int | None = None
        while True:
            result = self.loan_store.list(
                LoanFilter(
                    status=LoanStatus.ACTIVE,
                    branch_id=self.branch_id,
                    after_id=after_id,
                    per_page=self.page_size,
                )
            )
            yield from result.data
            if not result.has_next or not result.data:
                return
            after_id = result.data[-1].loan_id

    def _resolve_customer(self, loan: Loan) -> Customer | None:
        try:
            customer = self.customer_store.get_by_id(loan.customer_id)
        except Exception as e:
            logger.warning(
                "Customer lookup failed: loan_id=%s customer_id=%s error=%s",
                loan.loan_id,
                loan.customer_id,
                e,
            )
            return None

        if customer is None:
            logger.warning(
                "Customer not found for notification: loan_id=%s customer_id=%s",
                loan.loan_id,
                loan.customer_id,
            )
        return customer

    def _dispatch(
        self,
        loan: Loan,
        request: SendNotificationRequest,
        result: NotificationResult,
    ) -> bool:
        try:
            notification = self.sender.send_to_customer(request)
        except Exception as e:
            result.failed += 1
            logger.error(
                "Failed to send %s notification: loan_id=%s loan_number=%s error=%s",
                request.type.value,
                loan.loan_id,
                loan.loan_number,
                e,
            )
            return False

        if notification is None:
            result.suppressed += 1
        else:
            result.sent += 1
        return True

    def _money(self, amount: Decimal) -> str:
        return f"{self.currency}{amount:,.2f}"
