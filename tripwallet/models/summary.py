from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .expense import ExpenseOut


class TripSummary(BaseModel):
    """Budget status derived from a trip and its expenses; never persisted."""

    model_config = ConfigDict(frozen=True)

    total_spent: float
    remaining: float
    percent_used: float
    # True when budget_limit == 0 and something was spent.
    budget_undefined: bool = False
    expenses_by_category: List[Tuple[str, float]]


class TripSummaryOut(BaseModel):
    trip_id: int
    primary_currency: str
    budget_limit: float
    summary: TripSummary
    alert: Optional[Literal["warn", "over"]] = None
    overspent_by: float = 0.0
    recent_expenses: List[ExpenseOut]
