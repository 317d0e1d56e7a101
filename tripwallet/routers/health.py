from fastapi import APIRouter, Depends

from tripwallet.routers.deps import get_rate_service
from tripwallet.services.rate_service import RateService

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health(rates: RateService = Depends(get_rate_service)):
    return {
        "status": "ok",
        "expenses_enabled": rates.gate.expenses_enabled,
        "rates_stale": rates.policy.is_stale(),
    }
