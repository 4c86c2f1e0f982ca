"""Pytest configuration and fixtures."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable

import pytest

from pawn_engine.exceptions import NotificationError
from pawn_engine.models import (
    Customer,
    Item,
    Loan,
    Notification,
    SendNotificationRequest,
)
from pawn_engine.notifications.base import NotificationSender
from pawn_engine.store import InMemoryPawnStore

NOW = datetime(2025, 3, 15, 10, 0, 0)


class RecordingSender(NotificationSender):
    """Sender that keeps requests in memory and fails for chosen loans."""

    def __init__(self) -> None:
        self.requests: list[SendNotificationRequest] = []
        self.fail_for: set[int] = set()

    def send_to_customer(self, request: SendNotificationRequest) -> Notification | None:
        if request.reference_id in self.fail_for:
            raise NotificationError("SMS gateway unavailable")
        self.requests.append(request)
        return Notification(
            notification_id=f"n-{len(self.requests)}",
            customer_id=request.customer_id,
            notification_type=request.type,
            channel=request.channel,
            subject=request.title,
            body=request.message,
        )


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def now() -> datetime:
    """Reference instant: 2025-03-15 10:00 local time."""
    return NOW


@pytest.fixture
def clock(now: datetime) -> Callable[[], datetime]:
    """Clock frozen at ``now``."""
    return lambda: now


@pytest.fixture
def make_loan() -> Callable[..., Loan]:
    """Factory for a Q1,000 loan at 2% daily late fee, due 2025-03-01."""

    def _make(loan_id: int = 1, **overrides: object) -> Loan:
        values: dict[str, object] = {
            "loan_number": f"PL-{loan_id:05d}",
            "customer_id": 1,
            "item_id": loan_id,
            "loan_amount": Decimal("1000.00"),
            "interest_rate": Decimal("10"),
            "late_fee_rate": Decimal("2"),
            "start_date": date(2025, 2, 1),
            "due_date": date(2025, 3, 1),
            "grace_period_days": 30,
            "interest_amount": Decimal("100.00"),
            "principal_remaining": Decimal("1000.00"),
            "interest_remaining": Decimal("100.00"),
        }
        values.update(overrides)
        return Loan(loan_id=loan_id, **values)

    return _make


@pytest.fixture
def store(clock: Callable[[], datetime]) -> InMemoryPawnStore:
    """Store with an opted-in customer (1) and an opted-out customer (2)."""
    store = InMemoryPawnStore(clock=clock)
    store.add_customer(
        Customer(
            customer_id=1,
            first_name="Ana",
            last_name="López",
            phone="+502 5555-0001",
            email="ana@example.com",
            branch_id=1,
        )
    )
    store.add_customer(
        Customer(
            customer_id=2,
            first_name="Luis",
            last_name="Pérez",
            phone="+502 5555-0002",
            branch_id=2,
            notifications_enabled=False,
        )
    )
    return store


@pytest.fixture
def add_loan(store: InMemoryPawnStore, make_loan: Callable[..., Loan]) -> Callable[..., Loan]:
    """Add a loan, and a pawned item securing it, to ``store``."""

    def _add(loan_id: int = 1, customer_id: int = 1, **overrides: object) -> Loan:
        store.add_item(
            Item(
                item_id=loan_id,
                sku=f"JEW-{loan_id:06d}",
                name="Gold ring",
                appraised_value=Decimal("1500"),
                loan_value=Decimal("1000"),
                customer_id=customer_id,
            )
        )
        loan = make_loan(loan_id, customer_id=customer_id, item_id=loan_id, **overrides)
        store.add_loan(loan)
        return loan

    return _add


@pytest.fixture
def sender() -> RecordingSender:
    """In-memory notification sender."""
    return RecordingSender()
