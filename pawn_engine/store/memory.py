"""In-memory pawnshop store with referential integrity."""

from __future__ import annotations

import threading
from copy import copy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable

from pawn_engine.exceptions import EntityNotFoundError, ReferentialIntegrityError
from pawn_engine.lifecycle import ensure_transition
from pawn_engine.models import Customer, Item, ItemStatus, Loan, LoanStatus
from pawn_engine.store.base import CustomerStore, ItemStore, LoanFilter, LoanStore, Page


class _ItemStatusView(ItemStore):
    """Adapter exposing the item half of an ``InMemoryPawnStore``."""

    def __init__(self, store: InMemoryPawnStore) -> None:
        self._store = store

    def update_status(self, item_id: int, status: ItemStatus) -> None:
        self._store.update_item_status(item_id, status)


@dataclass
class InMemoryPawnStore(LoanStore, CustomerStore):
    """In-memory store for customers, items and loans.

    Reads hand out copies, so a caller only changes stored state through
    the write methods. A single lock serializes writes coming from
    concurrently running jobs.
    """

    customers: dict[int, Customer] = field(default_factory=dict)
    items: dict[int, Item] = field(default_factory=dict)
    loans: dict[int, Loan] = field(default_factory=dict)

    # Relationship indexes
    _customer_loans: dict[int, list[int]] = field(default_factory=dict)
    _item_loan: dict[int, int] = field(default_factory=dict)

    clock: Callable[[], datetime] = field(default=datetime.now, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def add_customer(self, customer: Customer) -> None:
        """Add a customer to the store."""
        with self._lock:
            self.customers[customer.customer_id] = customer
            self._customer_loans.setdefault(customer.customer_id, [])

    def add_item(self, item: Item) -> None:
        """Add a collateral item to the store."""
        if item.customer_id is not None and item.customer_id not in self.customers:
            raise ReferentialIntegrityError(f"Customer {item.customer_id} not found")
        with self._lock:
            self.items[item.item_id] = item

    def add_loan(self, loan: Loan) -> None:
        """Add a loan to the store."""
        if loan.customer_id not in self.customers:
            raise ReferentialIntegrityError(f"Customer {loan.customer_id} not found")

        if loan.item_id not in self.items:
            raise ReferentialIntegrityError(f"Item {loan.item_id} not found")

        with self._lock:
            holder = self._item_loan.get(loan.item_id)
            if holder is not None and holder != loan.loan_id:
                raise ReferentialIntegrityError(
                    f"Item {loan.item_id} already secures loan {holder}"
                )
            self.loans[loan.loan_id] = loan
            self._customer_loans[loan.customer_id].append(loan.loan_id)
            self._item_loan[loan.item_id] = loan.loan_id

    @property
    def item_store(self) -> ItemStore:
        """Item store view over the same data."""
        return _ItemStatusView(self)

    # LoanStore
    def get_overdue_loans(self, branch_id: int = 0) -> list[Loan]:
        now = self.clock()
        with self._lock:
            matches = [
                loan
                for loan in self.loans.values()
                if loan.status in (LoanStatus.ACTIVE, LoanStatus.OVERDUE)
                and datetime.combine(loan.due_date, datetime.min.time()) < now
                and (branch_id == 0 or loan.branch_id == branch_id)
            ]
            matches.sort(key=lambda loan: loan.due_date)
            return [copy(loan) for loan in matches]

    def list(self, params: LoanFilter) -> Page[Loan]:
        with self._lock:
            matches = [
                loan
                for loan in self.loans.values()
                if (params.status is None or loan.status == params.status)
                and (params.branch_id == 0 or loan.branch_id == params.branch_id)
                and (params.customer_id is None or loan.customer_id == params.customer_id)
                and (params.after_id is None or loan.loan_id > params.after_id)
            ]
            matches.sort(key=lambda loan: loan.loan_id)
            start = (max(params.page, 1) - 1) * params.per_page
            window = matches[start : start + params.per_page]
            return Page(
                data=[copy(loan) for loan in window],
                total=len(matches),
                page=max(params.page, 1),
                per_page=params.per_page,
            )

    def update_status(self, loan_id: int, status: LoanStatus) -> None:
        with self._lock:
            loan = self._get_loan(loan_id)
            if loan.status == status:
                return
            ensure_transition(loan.status, status)
            loan.status = status
            loan.updated_at = self.clock()
            if status == LoanStatus.CONFISCATED:
                loan.confiscated_date = loan.updated_at

    def update(self, loan: Loan) -> None:
        with self._lock:
            stored = self._get_loan(loan.loan_id)
            stored.interest_amount = loan.interest_amount
            stored.interest_remaining = loan.interest_remaining
            stored.late_fee_amount = loan.late_fee_amount
            stored.late_fee_remaining = loan.late_fee_remaining
            stored.updated_at = self.clock()

    def record_late_fee(self, loan_id: int, total: Decimal, increment: Decimal) -> None:
        with self._lock:
            stored = self._get_loan(loan_id)
            stored.late_fee_amount = total
            stored.late_fee_remaining += increment
            stored.updated_at = self.clock()

    def add_interest(self, loan_id: int, amount: Decimal) -> None:
        with self._lock:
            stored = self._get_loan(loan_id)
            stored.interest_amount += amount
            stored.interest_remaining += amount
            stored.updated_at = self.clock()

    # ItemStore
    def update_item_status(self, item_id: int, status: ItemStatus) -> None:
        with self._lock:
            item = self.items.get(item_id)
            if item is None:
                raise EntityNotFoundError(f"Item {item_id} not found")
            item.status = status
            item.updated_at = self.clock()

    # CustomerStore
    def get_by_id(self, customer_id: int) -> Customer | None:
        with self._lock:
            customer = self.customers.get(customer_id)
            return copy(customer) if customer is not None else None

    # Query methods
    def get_customer_loans(self, customer_id: int) -> list[Loan]:
        """Get all loans for a customer."""
        loan_ids = self._customer_loans.get(customer_id, [])
        return [copy(self.loans[lid]) for lid in loan_ids]

    def get_item_loan(self, item_id: int) -> Loan | None:
        """Get the loan an item secures, if any."""
        loan_id = self._item_loan.get(item_id)
        return copy(self.loans[loan_id]) if loan_id is not None else None

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities and loans by status."""
        with self._lock:
            counts = {
                "customers": len(self.customers),
                "items": len(self.items),
                "loans": len(self.loans),
            }
            for status in LoanStatus:
                counts[f"loans_{status.value}"] = sum(
                    1 for loan in self.loans.values() if loan.status == status
                )
            return counts

    def outstanding_late_fees(self) -> Decimal:
        """Sum of late fees still owed across all loans."""
        with self._lock:
            return sum((loan.late_fee_remaining for loan in self.loans.values()), Decimal("0"))

    def _get_loan(self, loan_id: int) -> Loan:
        loan = self.loans.get(loan_id)
        if loan is None:
            raise EntityNotFoundError(f"Loan {loan_id} not found")
        return loan
