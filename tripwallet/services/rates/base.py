from __future__ import annotations

"""Rate provider abstraction.

A provider answers two questions: "give me a full rate table" and "is this
API key accepted". Transport details stay inside the concrete classes.
"""
from abc import ABC, abstractmethod
from typing import Dict


class RateProvider(ABC):
    base_currency: str = "USD"

    @abstractmethod
    async def fetch_table(self, api_key: str) -> Dict[str, float]:
        """Return units of each currency per 1 unit of base_currency.

        Raises RateFetchFailed on any transport error or non-success answer.
        """
        raise NotImplementedError

    @abstractmethod
    async def validate_key(self, api_key: str) -> bool:
        """True only on an explicit success answer; never raises."""
        raise NotImplementedError
