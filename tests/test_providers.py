import asyncio
import logging
from types import SimpleNamespace

import httpx
import pytest

from tripwallet.core.config import Settings
from tripwallet.core.errors import RateFetchFailed
from tripwallet.services.rates.providers import (
    FxRatesApiProvider,
    StaticRateProvider,
    make_rate_provider,
    sanitize_table,
)
from tripwallet.services.rates.refresh import RefreshPolicy
from tripwallet.services.rates.store import RateStore


def _provider(*responses):
    calls = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return queue.pop(0) if len(queue) > 1 else queue[0]

    return (
        FxRatesApiProvider(
            "https://rates.test/latest",
            retries=2,
            backoff=0,
            transport=httpx.MockTransport(handler),
        ),
        calls,
    )


def test_fetch_parses_rate_table():
    provider, calls = _provider(
        httpx.Response(
            200,
            json={"success": True, "base": "USD", "rates": {"USD": 1, "EUR": 0.92}},
        )
    )
    table = asyncio.run(provider.fetch_table("key"))
    assert table == {"USD": 1.0, "EUR": 0.92}
    assert calls[0].url.params["api_key"] == "key"


def test_fetch_drops_invalid_entries(caplog):
    provider, _ = _provider(
        httpx.Response(
            200,
            json={
                "success": True,
                "base": "USD",
                "rates": {
                    "EUR": 0.92,
                    "BAD": 0,
                    "NEG": -1,
                    "STR": "1.2",
                    "NUL": None,
                    "BIG": 10**400,
                },
            },
        )
    )
    with caplog.at_level(logging.WARNING, logger="tripwallet.rates.providers"):
        table = asyncio.run(provider.fetch_table("key"))
    assert table == {"EUR": 0.92}
    assert "dropped 5 invalid rate entries" in caplog.text


def test_fetch_rejects_non_success_answer():
    provider, _ = _provider(httpx.Response(200, json={"success": False}))
    with pytest.raises(RateFetchFailed):
        asyncio.run(provider.fetch_table("key"))


def test_fetch_rejects_unexpected_base():
    provider, _ = _provider(
        httpx.Response(200, json={"success": True, "base": "EUR", "rates": {"USD": 1.1}})
    )
    with pytest.raises(RateFetchFailed, match="base 'EUR'"):
        asyncio.run(provider.fetch_table("key"))


def test_fetch_retries_server_errors_then_succeeds():
    provider, calls = _provider(
        httpx.Response(503),
        httpx.Response(502),
        httpx.Response(200, json={"success": True, "rates": {"EUR": 0.9}}),
    )
    assert asyncio.run(provider.fetch_table("key")) == {"EUR": 0.9}
    assert len(calls) == 3


def test_fetch_gives_up_after_retries():
    provider, calls = _provider(httpx.Response(500))
    with pytest.raises(RateFetchFailed, match="unreachable"):
        asyncio.run(provider.fetch_table("key"))
    assert len(calls) == 3


def test_fetch_does_not_retry_client_errors():
    provider, calls = _provider(httpx.Response(403))
    with pytest.raises(RateFetchFailed):
        asyncio.run(provider.fetch_table("key"))
    assert len(calls) == 1


def test_sanitize_requires_at_least_one_rate():
    with pytest.raises(RateFetchFailed):
        sanitize_table({"EUR": float("nan"), "GBP": True})
    with pytest.raises(RateFetchFailed):
        sanitize_table(None)


def test_static_provider_serves_usd_table():
    provider = StaticRateProvider()
    table = asyncio.run(provider.fetch_table("anything"))
    assert table["USD"] == 1.0
    assert provider.base_currency == "USD"
    assert asyncio.run(provider.validate_key("x")) is True
    assert asyncio.run(provider.validate_key("  ")) is False


def test_factory_builds_configured_provider(tmp_path):
    settings = Settings(data_dir=tmp_path, rate_provider="fxratesapi")
    assert isinstance(make_rate_provider(settings), FxRatesApiProvider)
    settings = Settings(data_dir=tmp_path, rate_provider="static")
    assert isinstance(make_rate_provider(settings), StaticRateProvider)


def test_automatic_refresh_absorbs_oversized_rates(caplog):
    provider, _ = _provider(
        httpx.Response(
            200, json={"success": True, "base": "USD", "rates": {"BIG": 10**400}}
        )
    )
    store = RateStore()
    gate = SimpleNamespace(api_key="key", expenses_enabled=True)
    policy = RefreshPolicy(store, provider, gate)

    with caplog.at_level(logging.WARNING, logger="tripwallet.rates.refresh"):
        assert asyncio.run(policy.maybe_auto_refresh()) is None
    assert store.current() is None
    assert "automatic rate refresh failed" in caplog.text
