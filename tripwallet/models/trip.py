from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import CURRENCY_PATTERN


class TripBase(BaseModel):
    name: str
    primary_currency: str = Field(..., pattern=CURRENCY_PATTERN)
    # Negative limits have no display convention; reject them here.
    budget_limit: float = Field(..., ge=0, allow_inf_nan=False)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("name cannot be empty")
        return value.strip()

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "TripBase":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class TripCreate(TripBase):
    make_active: bool = False


class TripUpdate(BaseModel):
    """Partial update. The primary currency is immutable once expenses exist
    in it, so it is not accepted here (create a new trip instead)."""

    name: Optional[str] = None
    budget_limit: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("name cannot be empty")
        return value.strip() if value is not None else None

    @model_validator(mode="after")
    def _at_least_one(self) -> "TripUpdate":
        if not any(
            getattr(self, field) is not None
            for field in ("name", "budget_limit", "start_date", "end_date")
        ):
            raise ValueError("at least one field must be provided")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class TripOut(TripBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
