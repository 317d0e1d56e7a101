from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from tripwallet.models.constants import CURRENCY_PATTERN
from tripwallet.models.rates import ConversionOut, RatesOut
from tripwallet.routers.deps import get_rate_service
from tripwallet.services.rate_service import RateService
from tripwallet.services.rates.conversion import convert_with_snapshot

"""Rates router.

Endpoints:
    - GET /rates           -> current snapshot, staleness, available currencies
    - POST /rates/refresh  -> manual refresh (shares any fetch already running)
    - GET /rates/convert   -> preview a conversion with the current snapshot
"""

router = APIRouter(prefix="/rates", tags=["rates"])

CurrencyParam = Annotated[str, Query(pattern=CURRENCY_PATTERN)]


def _rates_out(rates: RateService) -> RatesOut:
    snapshot = rates.store.current()
    if snapshot is None:
        return RatesOut(is_stale=True)
    return RatesOut(
        base_currency=snapshot.base_currency,
        fetched_at=snapshot.fetched_at,
        is_stale=rates.policy.is_stale(),
        currencies=snapshot.currencies(),
        rates=dict(snapshot.table),
    )


@router.get("/", response_model=RatesOut, summary="Current exchange-rate table")
async def get_rates(rates: RateService = Depends(get_rate_service)):
    return _rates_out(rates)


@router.post("/refresh", response_model=RatesOut, summary="Fetch fresh exchange rates")
async def refresh_rates(rates: RateService = Depends(get_rate_service)):
    # RateFetchFailed propagates to the 502 handler.
    await rates.policy.refresh()
    return _rates_out(rates)


@router.get("/convert", response_model=ConversionOut, summary="Preview a conversion")
async def convert_amount(
    amount: Annotated[float, Query(gt=0)],
    from_currency: CurrencyParam,
    to_currency: CurrencyParam,
    rates: RateService = Depends(get_rate_service),
):
    result = convert_with_snapshot(amount, from_currency, to_currency, rates.store.current())
    return ConversionOut(
        original_amount=result.original_amount,
        from_currency=result.from_currency,
        to_currency=result.to_currency,
        rate=result.rate,
        converted_amount=result.converted_amount,
    )
