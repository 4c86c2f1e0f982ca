"""Loan, item and customer stores."""

from pawn_engine.store.base import CustomerStore, ItemStore, LoanFilter, LoanStore, Page
from pawn_engine.store.memory import InMemoryPawnStore

__all__ = [
    "CustomerStore",
    "InMemoryPawnStore",
    "ItemStore",
    "LoanFilter",
    "LoanStore",
    "Page",
]
