"""Store contracts consumed by the scheduled jobs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Generic, TypeVar

from pawn_engine.models import Customer, ItemStatus, Loan, LoanStatus

T = TypeVar("T")


@dataclass
class LoanFilter:
    """Filter and pagination for loan listings."""

    status: LoanStatus | None = None
    branch_id: int = 0  # 0 = all branches
    customer_id: int | None = None
    after_id: int | None = None  # keyset cursor: only loans with a greater id
    page: int = 1
    per_page: int = 20


@dataclass
class Page(Generic[T]):
    """One page of results."""

    data: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class LoanStore(ABC):
    """Loan persistence used by the lifecycle jobs."""

    @abstractmethod
    def get_overdue_loans(self, branch_id: int = 0) -> list[Loan]:
        """Loans in ``active``/``overdue`` status whose due date has passed.

        Parameters
        ----------
        branch_id : int
            Branch to scope the query to, ``0`` for all branches.
        """

    @abstractmethod
    def list(self, params: LoanFilter) -> Page[Loan]:
        """Paged loan listing."""

    @abstractmethod
    def update_status(self, loan_id: int, status: LoanStatus) -> None:
        """Persist a status change for a single loan."""

    @abstractmethod
    def update(self, loan: Loan) -> None:
        """Overwrite the stored fee and interest fields with ``loan``'s values.

        Last write wins. Jobs accruing charges use ``record_late_fee`` and
        ``add_interest`` instead, which leave concurrent payments intact.
        """

    @abstractmethod
    def record_late_fee(self, loan_id: int, total: Decimal, increment: Decimal) -> None:
        """Set the late-fee total and add ``increment`` to what is still owed.

        ``late_fee_remaining`` is adjusted relative to its stored value, so a
        payment applied after the loan was read is not lost.
        """

    @abstractmethod
    def add_interest(self, loan_id: int, amount: Decimal) -> None:
        """Add ``amount`` to both the interest charged and the interest owed."""


class ItemStore(ABC):
    """Collateral item persistence."""

    @abstractmethod
    def update_status(self, item_id: int, status: ItemStatus) -> None:
        """Persist a status change for a single item."""


class CustomerStore(ABC):
    """Customer lookups."""

    @abstractmethod
    def get_by_id(self, customer_id: int) -> Customer | None:
        """Return the customer, or None when it does not exist."""
