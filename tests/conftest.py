"""Shared fixtures: an in-process rate provider and an isolated app."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from tripwallet.core.config import Settings
from tripwallet.core.errors import RateFetchFailed
from tripwallet.db.dal import Database
from tripwallet.db.migrate import apply_migrations
from tripwallet.main import create_app
from tripwallet.services.rates.base import RateProvider

GOOD_KEY = "good-key-1234"


class FakeProvider(RateProvider):
    """Counts calls; serves ``tables`` in order (the last one repeats)."""

    def __init__(
        self,
        tables: Optional[Sequence[Dict[str, float]]] = None,
        base_currency: str = "USD",
        valid_keys: Sequence[str] = (GOOD_KEY,),
    ):
        self.tables: List[Dict[str, float]] = list(tables or [{"USD": 1.0, "EUR": 0.9}])
        self.base_currency = base_currency
        self.valid_keys = set(valid_keys)
        self.fail = False
        self.release: Optional[asyncio.Event] = None
        self.calls = 0
        self.validations = 0

    async def fetch_table(self, api_key: str) -> Dict[str, float]:
        self.calls += 1
        call_no = self.calls
        if self.release is not None:
            await self.release.wait()
        if self.fail:
            raise RateFetchFailed("provider down")
        return dict(self.tables[min(call_no, len(self.tables)) - 1])

    async def validate_key(self, api_key: str) -> bool:
        self.validations += 1
        return api_key in self.valid_keys


def make_gate(api_key: Optional[str] = GOOD_KEY) -> SimpleNamespace:
    return SimpleNamespace(api_key=api_key, expenses_enabled=bool(api_key))


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(
        data_dir=tmp_path,
        db_path=tmp_path / "tripwallet-test.sqlite3",
        rate_provider="static",
        auto_refresh_rates=False,
    )
    s.init_post_load()
    return s


@pytest.fixture
def db(settings) -> Database:
    apply_migrations(settings.db_path)
    return Database(settings.db_path)


@pytest.fixture
def provider() -> FakeProvider:
    # Base EUR: 1 EUR = 1.1 USD on the first fetch, 1.5 USD afterwards.
    return FakeProvider(
        tables=[{"EUR": 1.0, "USD": 1.1}, {"EUR": 1.0, "USD": 1.5}],
        base_currency="EUR",
    )


@pytest.fixture
def app(settings, provider):
    return create_app(settings_override=settings, provider_override=provider)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
