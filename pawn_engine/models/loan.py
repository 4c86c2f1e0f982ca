"""Loan model."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from pawn_engine.models.enums import LoanStatus


@dataclass
class Loan:
    """Pawn loan secured by a single collateral item."""

    loan_id: int
    loan_number: str
    customer_id: int
    item_id: int
    loan_amount: Decimal  # Original principal
    interest_rate: Decimal  # Percentage
    late_fee_rate: Decimal  # Daily percentage of the principal
    start_date: date
    due_date: date
    grace_period_days: int = 0
    status: LoanStatus = LoanStatus.ACTIVE
    branch_id: int = 0
    interest_amount: Decimal = Decimal("0")
    principal_remaining: Decimal = Decimal("0")
    interest_remaining: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")
    late_fee_amount: Decimal = Decimal("0")  # Total ever assessed
    late_fee_remaining: Decimal = Decimal("0")  # Still owed
    confiscated_date: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime | None = None

    def remaining_balance(self) -> Decimal:
        """Principal, interest and late fees still owed."""
        return self.principal_remaining + self.interest_remaining + self.late_fee_remaining
