"""Demo data generators."""

from pawn_engine.generators.base import BaseGenerator
from pawn_engine.generators.portfolio import (
    CustomerGenerator,
    ItemGenerator,
    LoanGenerator,
    PortfolioConfig,
    PortfolioGenerator,
)

__all__ = [
    "BaseGenerator",
    "CustomerGenerator",
    "ItemGenerator",
    "LoanGenerator",
    "PortfolioConfig",
    "PortfolioGenerator",
]
