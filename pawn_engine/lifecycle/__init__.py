"""Loan lifecycle rules shared by every scheduled job."""

from pawn_engine.lifecycle.state_machine import (
    TERMINAL_STATUSES,
    accrues_late_fees,
    can_transition,
    compute_late_fee,
    days_overdue,
    days_until_confiscation,
    days_until_due,
    due_datetime,
    ensure_transition,
    grace_period_end,
    is_past_due,
    is_terminal,
    should_confiscate,
    should_mark_overdue,
    should_skip,
    sources_for,
)

__all__ = [
    "TERMINAL_STATUSES",
    "accrues_late_fees",
    "can_transition",
    "compute_late_fee",
    "days_overdue",
    "days_until_confiscation",
    "days_until_due",
    "due_datetime",
    "ensure_transition",
    "grace_period_end",
    "is_past_due",
    "is_terminal",
    "should_confiscate",
    "should_mark_overdue",
    "should_skip",
    "sources_for",
]
