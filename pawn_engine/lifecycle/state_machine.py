"""Loan status transitions and the time rules that drive them.

Every function here is pure: it looks at a loan and an instant and returns a
decision. Jobs that mutate loans call into this module so the overdue
processor, the late-fee engine and the notifier never disagree about what a
loan's status should be.

Times are naive local datetimes. A due date is taken to start at 00:00 of
that day, while the grace period runs until 23:59:59 of its last day.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from pawn_engine.exceptions import InvalidTransitionError
from pawn_engine.models.enums import LoanStatus
from pawn_engine.models.loan import Loan

TERMINAL_STATUSES = frozenset({LoanStatus.PAID, LoanStatus.CONFISCATED})

END_OF_DAY = time(23, 59, 59)

ONE_DAY = timedelta(days=1)

# Status only moves forward; paid and confiscated have no exits.
TRANSITIONS: dict[LoanStatus, frozenset[LoanStatus]] = {
    LoanStatus.ACTIVE: frozenset(
        {LoanStatus.OVERDUE, LoanStatus.PAID, LoanStatus.RENEWED, LoanStatus.DEFAULTED}
    ),
    LoanStatus.OVERDUE: frozenset(
        {LoanStatus.CONFISCATED, LoanStatus.PAID, LoanStatus.RENEWED, LoanStatus.DEFAULTED}
    ),
    LoanStatus.DEFAULTED: frozenset({LoanStatus.CONFISCATED, LoanStatus.PAID}),
    LoanStatus.RENEWED: frozenset(),
    LoanStatus.PAID: frozenset(),
    LoanStatus.CONFISCATED: frozenset(),
}


def is_terminal(status: LoanStatus) -> bool:
    """Return True when the engine must never touch a loan in this status."""
    return status in TERMINAL_STATUSES


def should_skip(loan: Loan) -> bool:
    """Fixed filter applied by every job before any other rule."""
    return is_terminal(loan.status)


def can_transition(source: LoanStatus, target: LoanStatus) -> bool:
    """Check whether ``source -> target`` is a forward transition."""
    return target in TRANSITIONS.get(source, frozenset())


def ensure_transition(source: LoanStatus, target: LoanStatus) -> None:
    """Raise InvalidTransitionError unless ``source -> target`` is allowed."""
    if not can_transition(source, target):
        raise InvalidTransitionError(
            f"Loan status cannot move from {source.value} to {target.value}"
        )


def sources_for(target: LoanStatus) -> frozenset[LoanStatus]:
    """All statuses from which ``target`` can be reached in one step."""
    return frozenset(src for src, targets in TRANSITIONS.items() if target in targets)


def due_datetime(loan: Loan) -> datetime:
    """Start of the due date."""
    return datetime.combine(loan.due_date, time.min)


def grace_period_end(loan: Loan) -> datetime:
    """Last second of the grace period (due date + grace days, 23:59:59)."""
    last_day = loan.due_date + timedelta(days=loan.grace_period_days)
    return datetime.combine(last_day, END_OF_DAY)


def is_past_due(loan: Loan, now: datetime) -> bool:
    return now > due_datetime(loan)


def should_mark_overdue(loan: Loan, now: datetime) -> bool:
    """``active -> overdue`` once the due date has passed."""
    return loan.status == LoanStatus.ACTIVE and is_past_due(loan, now)


def should_confiscate(loan: Loan, now: datetime) -> bool:
    """``overdue -> confiscated`` once the grace period has fully elapsed.

    The loan must already be overdue: an active loan is never confiscated
    directly, even when both thresholds have passed.
    """
    return loan.status == LoanStatus.OVERDUE and now >= grace_period_end(loan)


def accrues_late_fees(status: LoanStatus) -> bool:
    return status == LoanStatus.OVERDUE


def days_overdue(loan: Loan, now: datetime) -> int:
    """Whole days elapsed since the due date (negative before it)."""
    return (now - due_datetime(loan)) // ONE_DAY


def days_until_due(loan: Loan, today: date | datetime) -> int:
    """Calendar days from ``today`` to the due date."""
    return (loan.due_date - _as_date(today)).days


def days_until_confiscation(loan: Loan, today: date | datetime) -> int:
    """Calendar days from ``today`` to the last day of the grace period."""
    last_day = loan.due_date + timedelta(days=loan.grace_period_days)
    return (last_day - _as_date(today)).days


def compute_late_fee(loan: Loan, days: int) -> Decimal:
    """Simple daily penalty on the original principal."""
    if days <= 0:
        return Decimal("0")
    return loan.late_fee_rate / Decimal(100) * loan.loan_amount * days


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value
