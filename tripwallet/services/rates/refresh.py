from __future__ import annotations

"""Rate refresh policy.

Decides when the rate table is fetched and makes sure only one fetch runs at a
time:

    - An automatic attempt happens at most once per process, only with a
      validated API key, and only when the stored table is missing or older
      than the staleness threshold. The attempt is marked *before* the fetch
      is awaited so a second trigger cannot start a duplicate.
    - Manual refreshes are not limited in number and surface failures.
    - Concurrent callers share one in-flight task (keyed by a constant, there is
      only one rate table) and all observe the same snapshot or the same error.
      Callers await a shielded view, so abandoning interest never cancels the
      fetch; a finished fetch always lands in the store.
"""
import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Protocol

from tripwallet.core.errors import RateFetchFailed
from tripwallet.models.rates import RateSnapshot
from .base import RateProvider
from .store import STALE_AFTER_NS, RateStore

logger = logging.getLogger("tripwallet.rates.refresh")

_FLIGHT_KEY = "rates"


class SupportsCredential(Protocol):
    @property
    def api_key(self) -> Optional[str]: ...

    @property
    def expenses_enabled(self) -> bool: ...


class RefreshPolicy:
    def __init__(
        self,
        store: RateStore,
        provider: RateProvider,
        gate: SupportsCredential,
        *,
        clock: Callable[[], int] = time.time_ns,
        stale_after_ns: int = STALE_AFTER_NS,
        on_snapshot: Optional[Callable[[RateSnapshot], None]] = None,
    ):
        self._store = store
        self._provider = provider
        self._gate = gate
        self._clock = clock
        self._stale_after_ns = stale_after_ns
        self._on_snapshot = on_snapshot
        self._inflight: Dict[str, asyncio.Task] = {}
        self._auto_attempted = False

    # Session state ---------------------------------------------
    @property
    def auto_attempted(self) -> bool:
        return self._auto_attempted

    def reset(self) -> None:
        """Forget the automatic attempt, as a process restart would."""
        self._auto_attempted = False

    def is_stale(self, now: Optional[int] = None) -> bool:
        now = self._clock() if now is None else now
        return self._store.is_stale(now, self._stale_after_ns)

    def should_auto_refresh(self, now: Optional[int] = None) -> bool:
        if not self._gate.expenses_enabled or self._auto_attempted:
            return False
        return self.is_stale(now)

    # Public API -----------------------------------------------
    async def maybe_auto_refresh(self) -> Optional[RateSnapshot]:
        """Run the once-per-process automatic refresh if it is due.

        Returns the new snapshot, or None when nothing was fetched or the fetch
        failed (failures are logged, never raised).
        """
        if not self.should_auto_refresh():
            return None
        self._auto_attempted = True
        try:
            return await self._shared_fetch()
        except RateFetchFailed as e:
            logger.warning("automatic rate refresh failed: %s", e)
            return None

    async def refresh(self) -> RateSnapshot:
        """Manual refresh; raises RateFetchFailed on failure."""
        return await self._shared_fetch()

    def in_flight(self) -> bool:
        return _FLIGHT_KEY in self._inflight

    async def wait_idle(self) -> None:
        task = self._inflight.get(_FLIGHT_KEY)
        if task is not None:
            await asyncio.wait([task])

    # Internal --------------------------------------------------
    def _shared_fetch(self) -> "asyncio.Future[RateSnapshot]":
        task = self._inflight.get(_FLIGHT_KEY)
        if task is None:
            task = asyncio.ensure_future(self._fetch())
            self._inflight[_FLIGHT_KEY] = task
            task.add_done_callback(self._forget)
        return asyncio.shield(task)

    def _forget(self, task: asyncio.Task) -> None:
        if self._inflight.get(_FLIGHT_KEY) is task:
            del self._inflight[_FLIGHT_KEY]
        # Mark the outcome retrieved even if every caller walked away.
        if not task.cancelled():
            task.exception()

    async def _fetch(self) -> RateSnapshot:
        api_key = self._gate.api_key
        if not api_key:
            raise RateFetchFailed("no validated API key configured")
        table = await self._provider.fetch_table(api_key)
        snapshot = RateSnapshot(
            table=table,
            fetched_at=self._clock(),
            base_currency=self._provider.base_currency,
        )
        self._store.replace(snapshot)
        logger.info("exchange rates refreshed (%d currencies)", len(snapshot.table))
        if self._on_snapshot is not None:
            try:
                self._on_snapshot(snapshot)
            except Exception:
                # The in-memory store is authoritative for this process.
                logger.exception("failed to persist rate snapshot")
        return snapshot
