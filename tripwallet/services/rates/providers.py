from __future__ import annotations

"""Concrete rate providers and factory.

'static' serves a fixed table for offline/dev use; 'fxratesapi' talks to
api.fxratesapi.com, which answers ``{"success": true, "base": "USD",
"rates": {...}}``.
"""
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from tripwallet.core.config import Settings
from tripwallet.core.errors import RateFetchFailed
from tripwallet.models.rates import is_valid_rate
from tripwallet.services.http_client import HttpError, get_json
from .base import RateProvider

logger = logging.getLogger("tripwallet.rates.providers")

_STATIC_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.5,
    "AUD": 1.52,
    "CAD": 1.36,
    "CHF": 0.88,
    "INR": 83.2,
    "SGD": 1.34,
    "THB": 35.6,
}


class StaticRateProvider(RateProvider):
    """Fixed offline table for local development; accepts any non-blank key."""

    async def fetch_table(self, api_key: str) -> Dict[str, float]:  # type: ignore[override]
        return dict(_STATIC_RATES)

    async def validate_key(self, api_key: str) -> bool:  # type: ignore[override]
        return bool(api_key and api_key.strip())


def sanitize_table(raw: Any) -> Dict[str, float]:
    """Keep only entries with a string code and a positive finite rate."""
    if not isinstance(raw, dict):
        raise RateFetchFailed("rate payload has no 'rates' object")
    table: Dict[str, float] = {}
    dropped = []
    for code, value in raw.items():
        if isinstance(code, str) and is_valid_rate(value):
            table[code] = float(value)
        else:
            dropped.append(code)
    if dropped:
        logger.warning("dropped %d invalid rate entries: %s", len(dropped), dropped[:10])
    if not table:
        raise RateFetchFailed("rate payload contained no usable rates")
    return table


class FxRatesApiProvider(RateProvider):
    def __init__(
        self,
        url: str = "https://api.fxratesapi.com/latest",
        *,
        timeout: float = 5.0,
        retries: int = 2,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._retries = retries
        self._backoff = backoff
        self._transport = transport

    async def fetch_table(self, api_key: str) -> Dict[str, float]:  # type: ignore[override]
        try:
            data = await get_json(
                self._url,
                params={"api_key": api_key},
                timeout=self._timeout,
                retries=self._retries,
                backoff=self._backoff,
                transport=self._transport,
            )
        except HttpError as e:
            raise RateFetchFailed(f"rate provider unreachable: {e}") from e
        if data.get("success") is not True:
            raise RateFetchFailed("rate provider returned a non-success response")
        base = data.get("base")
        if base is not None and base != self.base_currency:
            raise RateFetchFailed(
                f"rate provider answered with base {base!r}, expected {self.base_currency!r}"
            )
        return sanitize_table(data.get("rates"))

    async def validate_key(self, api_key: str) -> bool:  # type: ignore[override]
        # Fail closed: 4xx, 5xx and transport errors all mean "invalid". No retry.
        try:
            data = await get_json(
                self._url,
                params={"api_key": api_key},
                timeout=self._timeout,
                retries=0,
                transport=self._transport,
            )
        except HttpError as e:
            logger.info("api key validation failed: %s", e)
            return False
        return data.get("success") is True


_PROVIDER_REGISTRY: Dict[str, Callable[[Settings], RateProvider]] = {
    "static": lambda settings: StaticRateProvider(),
    "fxratesapi": lambda settings: FxRatesApiProvider(
        settings.rates_api_url,
        timeout=settings.http_timeout_seconds,
        retries=settings.http_retries,
    ),
}


def make_rate_provider(settings: Settings) -> RateProvider:
    factory = _PROVIDER_REGISTRY.get(settings.rate_provider)
    if not factory:
        raise ValueError(f"Unknown rate provider kind '{settings.rate_provider}'")
    return factory(settings)
