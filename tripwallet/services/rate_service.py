"""Wiring for the exchange-rate side of the app.

One ``RateService`` per application instance bundles the rate store, the
configured provider, the feature gate and the refresh policy. The store is
seeded from the persisted snapshot on startup and every successful refresh is
written back, so staleness is judged across restarts while the
"automatic attempt already made" flag starts fresh with each process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tripwallet.core.config import Settings
from tripwallet.db.dal import Database
from tripwallet.services.feature_gate import FeatureGate
from tripwallet.services.rates.base import RateProvider
from tripwallet.services.rates.providers import make_rate_provider
from tripwallet.services.rates.refresh import RefreshPolicy
from tripwallet.services.rates.store import RateStore

logger = logging.getLogger("tripwallet.rates")


@dataclass
class RateService:
    store: RateStore
    provider: RateProvider
    gate: FeatureGate
    policy: RefreshPolicy


def build_rate_service(
    settings: Settings, db: Database, provider: RateProvider | None = None
) -> RateService:
    provider = provider or make_rate_provider(settings)
    snapshot = db.load_rate_snapshot()
    if snapshot is not None:
        logger.debug("loaded persisted rate snapshot fetched_at=%d", snapshot.fetched_at)
    store = RateStore(snapshot)
    gate = FeatureGate(db, provider)
    policy = RefreshPolicy(
        store,
        provider,
        gate,
        stale_after_ns=settings.rates_stale_after_ns,
        on_snapshot=db.save_rate_snapshot,
    )
    return RateService(store=store, provider=provider, gate=gate, policy=policy)
