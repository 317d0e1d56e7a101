"""Trip budget aggregation.

Turns a trip and its expense records into a TripSummary in the trip's primary
currency. Only the frozen ``converted_amount`` of each expense is used; nothing
here looks at exchange rates. Kept framework-agnostic so routes and tests share
the same logic.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from tripwallet.models.summary import TripSummary

# Dashboard thresholds: warn past 80% used, "over" past 100%.
WARN_PCT = 80.0
OVER_PCT = 100.0

# percent_used reported when the budget is 0 but money was spent.
OVER_BUDGET_PERCENT_USED = 9999.0


class TripLike(Protocol):
    id: int
    budget_limit: float


class ExpenseLike(Protocol):
    id: int
    trip_id: int
    converted_amount: float
    category: str
    date: int


def _percent_used(total_spent: float, budget_limit: float) -> tuple[float, bool]:
    if budget_limit > 0:
        return (total_spent / budget_limit) * 100, False
    if total_spent == 0:
        return 0.0, False
    return OVER_BUDGET_PERCENT_USED, True


def category_totals(expenses: Iterable[ExpenseLike]) -> List[tuple[str, float]]:
    """Sum per category, largest first; equal totals ordered by category name."""
    totals: Dict[str, float] = defaultdict(float)
    for e in expenses:
        totals[e.category] += e.converted_amount
    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))


def summarize(trip: TripLike, expenses: Iterable[ExpenseLike]) -> TripSummary:
    if trip.budget_limit < 0:
        raise ValueError("budget_limit cannot be negative")
    own = [e for e in expenses if e.trip_id == trip.id]
    total_spent = sum(e.converted_amount for e in own)
    percent_used, undefined = _percent_used(total_spent, trip.budget_limit)
    return TripSummary(
        total_spent=total_spent,
        remaining=trip.budget_limit - total_spent,
        percent_used=percent_used,
        budget_undefined=undefined,
        expenses_by_category=category_totals(own),
    )


def budget_alert(summary: TripSummary) -> Optional[str]:
    if summary.percent_used > OVER_PCT:
        return "over"
    if summary.percent_used > WARN_PCT:
        return "warn"
    return None


def overspent_by(summary: TripSummary) -> float:
    return abs(summary.remaining) if summary.remaining < 0 else 0.0


def recent_expenses(expenses: Sequence[ExpenseLike], limit: int = 5) -> List[ExpenseLike]:
    return sorted(expenses, key=lambda e: (e.date, e.id), reverse=True)[:limit]


__all__ = [
    "OVER_BUDGET_PERCENT_USED",
    "summarize",
    "category_totals",
    "budget_alert",
    "overspent_by",
    "recent_expenses",
]
