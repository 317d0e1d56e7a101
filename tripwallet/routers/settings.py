from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from tripwallet.core.errors import RateFetchFailed
from tripwallet.models.rates import ApiKeyIn, ApiKeyStatus
from tripwallet.routers.deps import get_rate_service
from tripwallet.services.rate_service import RateService

"""Settings router: exchange-rate API key management.

Saving a key validates it with the provider first; once stored, a refresh is
attempted right away so the first expense has rates to work with. That
refresh is best-effort: its failure does not undo the saved key.
"""

logger = logging.getLogger("tripwallet.settings")

router = APIRouter(prefix="/settings", tags=["settings"])


def _status(rates: RateService) -> ApiKeyStatus:
    return ApiKeyStatus(
        has_api_key=rates.gate.api_key is not None,
        expenses_enabled=rates.gate.expenses_enabled,
        masked_key=rates.gate.masked_key(),
    )


@router.get("/api-key", response_model=ApiKeyStatus, summary="API key status")
async def get_api_key_status(rates: RateService = Depends(get_rate_service)):
    return _status(rates)


@router.put("/api-key", summary="Validate and store the exchange-rate API key")
async def set_api_key(payload: ApiKeyIn, rates: RateService = Depends(get_rate_service)):
    await rates.gate.validate_and_store(payload.api_key)
    rates_fetched = True
    try:
        await rates.policy.refresh()
    except RateFetchFailed as e:
        logger.warning("rates not fetched after saving api key: %s", e)
        rates_fetched = False
    return {"status": _status(rates), "rates_fetched": rates_fetched}


@router.delete("/api-key", response_model=ApiKeyStatus, summary="Remove the API key")
async def delete_api_key(rates: RateService = Depends(get_rate_service)):
    rates.gate.delete_key()
    return _status(rates)
