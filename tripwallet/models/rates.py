from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field


def is_valid_rate(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        value = float(value)
    except OverflowError:
        return False
    return math.isfinite(value) and value > 0


@dataclass(frozen=True)
class RateSnapshot:
    """A complete rate table as fetched at ``fetched_at`` (epoch nanoseconds).

    Values are units of each currency per one unit of ``base_currency``.
    Snapshots are replaced wholesale; the table is exposed read-only.
    """

    table: Mapping[str, float]
    fetched_at: int
    base_currency: str = "USD"

    def __post_init__(self) -> None:
        for code, rate in self.table.items():
            if not is_valid_rate(rate):
                raise ValueError(f"rate for {code!r} must be a positive finite number")
        object.__setattr__(self, "table", MappingProxyType(dict(self.table)))

    def currencies(self) -> List[str]:
        return sorted(set(self.table) | {self.base_currency})


class RatesOut(BaseModel):
    base_currency: Optional[str] = None
    fetched_at: Optional[int] = None
    is_stale: bool
    currencies: List[str] = Field(default_factory=list)
    rates: Dict[str, float] = Field(default_factory=dict)


class ConversionOut(BaseModel):
    original_amount: float
    from_currency: str
    to_currency: str
    rate: float
    converted_amount: float


class ApiKeyIn(BaseModel):
    api_key: str = Field(..., min_length=1, max_length=200)


class ApiKeyStatus(BaseModel):
    has_api_key: bool
    expenses_enabled: bool
    masked_key: Optional[str] = None
