"""Expense feature gate driven by the exchange-rate API key.

Expense creation is allowed only while a validated key is stored. A key is
validated against the rate provider before it is saved; anything short of an
explicit success answer is treated as invalid. Deleting the key disables
expenses before the call returns.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from tripwallet.core.errors import ExpensesDisabled, InvalidCredential
from tripwallet.services.rates.base import RateProvider

logger = logging.getLogger("tripwallet.feature_gate")


class KeyStore(Protocol):
    def get_api_key(self) -> Optional[str]: ...

    def set_api_key(self, key: str) -> None: ...

    def delete_api_key(self) -> bool: ...


class FeatureGate:
    def __init__(self, keys: KeyStore, provider: RateProvider):
        self._keys = keys
        self._provider = provider
        # Only validated keys are ever persisted.
        self._api_key: Optional[str] = keys.get_api_key()

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    @property
    def expenses_enabled(self) -> bool:
        return bool(self._api_key)

    def masked_key(self) -> Optional[str]:
        if not self._api_key:
            return None
        return "*" * max(len(self._api_key) - 4, 4) + self._api_key[-4:]

    def require_enabled(self) -> None:
        if not self.expenses_enabled:
            raise ExpensesDisabled()

    async def validate_and_store(self, candidate: str) -> str:
        key = (candidate or "").strip()
        if not key:
            raise InvalidCredential("Please enter an API key")
        if not await self._provider.validate_key(key):
            logger.info("rejected api key ending in %s", key[-4:])
            raise InvalidCredential()
        self._keys.set_api_key(key)
        self._api_key = key
        logger.info("api key validated and stored")
        return key

    def delete_key(self) -> bool:
        had_key = self._api_key is not None
        self._api_key = None
        removed = self._keys.delete_api_key()
        return had_key or removed
