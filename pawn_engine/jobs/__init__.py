"""Scheduled batch jobs over the loan book."""

from pawn_engine.jobs.interest import DailyInterestJob
from pawn_engine.jobs.late_fees import LateFeeEngine, LateFeeResult, apply_late_fee
from pawn_engine.jobs.overdue import OverdueProcessor, OverdueResult
from pawn_engine.jobs.reminders import REMINDER_LEAD_DAYS, NotificationResult, ReminderNotifier
from pawn_engine.jobs.report import DailyReportJob, PortfolioReport

__all__ = [
    "REMINDER_LEAD_DAYS",
    "DailyInterestJob",
    "DailyReportJob",
    "LateFeeEngine",
    "LateFeeResult",
    "NotificationResult",
    "OverdueProcessor",
    "OverdueResult",
    "PortfolioReport",
    "ReminderNotifier",
    "apply_late_fee",
]
