"""Shared plumbing for batch jobs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

Clock = Callable[[], datetime]

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round a money amount to two decimal places."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class BatchResult:
    """Counters common to every batch run."""

    scanned: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False

    def as_dict(self) -> dict[str, object]:
        return asdict(self)
