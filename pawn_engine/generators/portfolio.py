"""Demo loan book covering every point of the loan lifecycle."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from pawn_engine.generators.base import BaseGenerator
from pawn_engine.models import Customer, Item, ItemStatus, Loan, LoanStatus
from pawn_engine.store.memory import InMemoryPawnStore

logger = logging.getLogger(__name__)

# (category, article names, appraised value range in quetzales)
ITEM_CATALOG = [
    ("jewelry", ["Gold ring", "Silver necklace", "Gold bracelet", "Wedding band"], (500, 8000)),
    ("electronics", ["Smartphone", "Laptop", "Tablet", "Television"], (800, 12000)),
    ("tools", ["Power drill", "Circular saw", "Welding machine"], (400, 5000)),
    ("instruments", ["Acoustic guitar", "Electric keyboard", "Trumpet"], (600, 7000)),
    ("watches", ["Wrist watch", "Pocket watch"], (300, 15000)),
]

# Due date offsets (days from "as of") and status for each lifecycle scenario
SCENARIOS = {
    "due_later": (lambda: random.randint(8, 30), LoanStatus.ACTIVE),
    "due_soon": (lambda: random.choice([1, 3, 7]), LoanStatus.ACTIVE),
    "just_past_due": (lambda: -random.randint(1, 3), LoanStatus.ACTIVE),
    "overdue_in_grace": (lambda: -random.randint(1, 10), LoanStatus.OVERDUE),
    "grace_expired": (lambda: -random.randint(40, 60), LoanStatus.OVERDUE),
    "paid": (lambda: -random.randint(1, 60), LoanStatus.PAID),
    "renewed": (lambda: -random.randint(1, 30), LoanStatus.RENEWED),
}

SCENARIO_WEIGHTS = {
    "due_later": 0.35,
    "due_soon": 0.15,
    "just_past_due": 0.1,
    "overdue_in_grace": 0.15,
    "grace_expired": 0.1,
    "paid": 0.1,
    "renewed": 0.05,
}


class CustomerGenerator(BaseGenerator):
    """Generate synthetic pawnshop customers."""

    def __init__(self, seed: int | None = None, locale: str = "es_MX") -> None:
        super().__init__(seed, locale)
        self._next_id = 1

    def generate(self, branch_id: int = 1) -> Customer:
        """Generate a customer.

        Parameters
        ----------
        branch_id : int
            Branch the customer registered at.

        Returns
        -------
        Customer
            Generated customer.
        """
        customer_id = self._next_id
        self._next_id += 1
        first_name = self.fake.first_name()
        last_name = self.fake.last_name()
        return Customer(
            customer_id=customer_id,
            first_name=first_name,
            last_name=last_name,
            phone=f"+502 {random.randint(3000, 5999)}-{random.randint(0, 9999):04d}",
            email=self.fake.email() if random.random() < 0.6 else "",
            branch_id=branch_id,
            notifications_enabled=random.random() < 0.9,
            created_at=self.fake.date_time_between(start_date="-3y", end_date="-90d"),
        )


class ItemGenerator(BaseGenerator):
    """Generate synthetic collateral items."""

    def __init__(self, seed: int | None = None, locale: str = "es_MX") -> None:
        super().__init__(seed, locale)
        self._next_id = 1

    def generate(self, customer_id: int, branch_id: int = 1) -> Item:
        """Generate a pawned item owned by ``customer_id``."""
        item_id = self._next_id
        self._next_id += 1

        category, names, (low, high) = random.choice(ITEM_CATALOG)
        appraised = Decimal(random.randint(low // 10, high // 10) * 10)
        # Pawnshops lend 50-70% of the appraisal
        ratio = Decimal(str(random.choice([0.5, 0.6, 0.7])))

        return Item(
            item_id=item_id,
            sku=f"{category[:3].upper()}-{item_id:06d}",
            name=random.choice(names),
            appraised_value=appraised,
            loan_value=(appraised * ratio).quantize(Decimal("1")),
            status=ItemStatus.PAWNED,
            branch_id=branch_id,
            customer_id=customer_id,
        )


class LoanGenerator(BaseGenerator):
    """Generate pawn loans positioned at a chosen lifecycle scenario."""

    TERMS_DAYS = [30, 60, 90]
    GRACE_DAYS = [0, 5, 10, 15, 30]

    def __init__(self, seed: int | None = None, locale: str = "es_MX") -> None:
        super().__init__(seed, locale)
        self._next_id = 1

    def generate(
        self,
        customer: Customer,
        item: Item,
        scenario: str = "due_later",
        as_of: date | None = None,
    ) -> Loan:
        """Generate a loan secured by ``item``.

        Parameters
        ----------
        customer : Customer
            Borrower.
        item : Item
            Collateral; its ``loan_value`` becomes the principal.
        scenario : str
            Key of ``SCENARIOS`` deciding the due date and status.
        as_of : date | None
            Reference date the scenario is relative to (default today).

        Returns
        -------
        Loan
            Generated loan.
        """
        as_of = as_of or date.today()
        offset, status = SCENARIOS[scenario]
        loan_id = self._next_id
        self._next_id += 1

        term = random.choice(self.TERMS_DAYS)
        due_date = as_of + timedelta(days=offset())
        start_date = due_date - timedelta(days=term)
        principal = item.loan_value
        interest_rate = Decimal(random.choice(["5", "7.5", "10", "12"]))
        interest = (principal * interest_rate / 100).quantize(Decimal("0.01"))

        grace = random.choice(self.GRACE_DAYS)
        if scenario == "grace_expired":
            grace = min(grace, 30)
        elif scenario == "overdue_in_grace":
            grace = max(grace, 15)

        loan = Loan(
            loan_id=loan_id,
            loan_number=f"PL-{start_date:%Y%m}-{loan_id:05d}",
            customer_id=customer.customer_id,
            item_id=item.item_id,
            loan_amount=principal,
            interest_rate=interest_rate,
            late_fee_rate=Decimal(random.choice(["0.5", "1", "2"])),
            start_date=start_date,
            due_date=due_date,
            grace_period_days=grace,
            status=status,
            branch_id=customer.branch_id,
            interest_amount=interest,
            principal_remaining=principal,
            interest_remaining=interest,
            created_at=datetime.combine(start_date, datetime.min.time()),
        )

        if status == LoanStatus.PAID:
            loan.amount_paid = principal + interest
            loan.principal_remaining = Decimal("0")
            loan.interest_remaining = Decimal("0")

        return loan


@dataclass
class PortfolioConfig:
    """Shape of a generated demo portfolio."""

    num_customers: int = 50
    loans_per_customer: tuple[int, int] = (1, 3)
    branches: int = 3
    scenario_weights: dict[str, float] | None = None


class PortfolioGenerator:
    """Populate an ``InMemoryPawnStore`` with a consistent demo loan book.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    as_of : date | None
        Reference date that scenarios are positioned around.
    """

    def __init__(self, seed: int | None = None, as_of: date | None = None) -> None:
        self.customer_gen = CustomerGenerator(seed)
        self.item_gen = ItemGenerator(seed)
        self.loan_gen = LoanGenerator(seed)
        self.as_of = as_of or date.today()

    def populate(
        self,
        store: InMemoryPawnStore,
        config: PortfolioConfig | None = None,
    ) -> InMemoryPawnStore:
        """Add customers, items and loans to ``store`` and return it."""
        config = config or PortfolioConfig()
        weights = config.scenario_weights or SCENARIO_WEIGHTS
        scenarios = list(weights)
        probabilities = [weights[s] for s in scenarios]

        for _ in range(config.num_customers):
            customer = self.customer_gen.generate(branch_id=random.randint(1, config.branches))
            store.add_customer(customer)

            for _ in range(random.randint(*config.loans_per_customer)):
                item = self.item_gen.generate(customer.customer_id, customer.branch_id)
                scenario = random.choices(scenarios, weights=probabilities, k=1)[0]
                loan = self.loan_gen.generate(customer, item, scenario, as_of=self.as_of)

                if loan.status == LoanStatus.PAID:
                    item.status = ItemStatus.AVAILABLE
                store.add_item(item)
                store.add_loan(loan)

        logger.info("Demo portfolio generated: %s", store.summary())
        return store
