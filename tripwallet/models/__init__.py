"""Pydantic domain models for TripWallet."""

from .constants import CATEGORIES, CURRENCY_PATTERN, NS_PER_DAY  # re-export
from .expense import ExpenseIn, ExpenseOut, ExpenseUpdateIn
from .rates import RateSnapshot
from .summary import TripSummary
from .trip import TripCreate, TripOut, TripUpdate

__all__ = [
    "CATEGORIES",
    "CURRENCY_PATTERN",
    "NS_PER_DAY",
    "ExpenseIn",
    "ExpenseOut",
    "ExpenseUpdateIn",
    "RateSnapshot",
    "TripSummary",
    "TripCreate",
    "TripOut",
    "TripUpdate",
]
