from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from .constants import CATEGORIES, CURRENCY_PATTERN


def _check_category(value: str) -> str:
    if value not in CATEGORIES:
        raise ValueError("unsupported category")
    return value


Category = Annotated[str, AfterValidator(_check_category)]


class ExpenseIn(BaseModel):
    """Raw expense input. ``date`` is a nanosecond timestamp (defaults to now)."""

    trip_id: Optional[int] = None  # defaults to the active trip
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    local_currency: str = Field(..., pattern=CURRENCY_PATTERN)
    category: Category
    note: Optional[str] = Field(None, max_length=500)
    date: Optional[int] = Field(None, ge=0)


class ExpenseUpdateIn(BaseModel):
    """Partial update model. Any change re-freezes the converted amount with
    the rates current at edit time."""

    amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    local_currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN)
    category: Optional[Category] = None
    note: Optional[str] = Field(None, max_length=500)
    date: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _at_least_one(self) -> "ExpenseUpdateIn":
        if not any(
            getattr(self, f) is not None
            for f in ("amount", "local_currency", "category", "note", "date")
        ):
            raise ValueError("at least one field must be provided for update")
        return self


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    amount: float
    local_currency: str
    # Written once per create/edit; never derived from live rates.
    converted_amount: float
    exchange_rate: float
    category: str
    note: Optional[str] = None
    date: int
    created_at: datetime
    updated_at: datetime
