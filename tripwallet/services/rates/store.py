from __future__ import annotations

"""In-memory holder of the current rate snapshot.

The snapshot is immutable and swapped in with a single attribute assignment,
so a reader always sees either the old table or the new one in full.
"""
import time
from typing import List, Optional

from tripwallet.models.constants import NS_PER_DAY
from tripwallet.models.rates import RateSnapshot

STALE_AFTER_NS = NS_PER_DAY


class RateStore:
    def __init__(self, snapshot: Optional[RateSnapshot] = None):
        self._snapshot = snapshot

    def current(self) -> Optional[RateSnapshot]:
        return self._snapshot

    def replace(self, snapshot: RateSnapshot) -> None:
        if not isinstance(snapshot, RateSnapshot):
            raise TypeError("replace() expects a RateSnapshot")
        self._snapshot = snapshot

    def is_stale(self, now: Optional[int] = None, threshold: int = STALE_AFTER_NS) -> bool:
        snapshot = self._snapshot
        if snapshot is None:
            return True
        now = time.time_ns() if now is None else now
        return now - snapshot.fetched_at > threshold

    def available_currencies(self) -> List[str]:
        snapshot = self._snapshot
        return snapshot.currencies() if snapshot else []
