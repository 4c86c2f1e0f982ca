"""Collateral item model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from pawn_engine.models.enums import ItemStatus


@dataclass
class Item:
    """Pawned article held as collateral or offered for sale."""

    item_id: int
    sku: str
    name: str
    appraised_value: Decimal
    loan_value: Decimal
    status: ItemStatus = ItemStatus.PAWNED
    branch_id: int = 0
    customer_id: int | None = None  # Original owner
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime | None = None
