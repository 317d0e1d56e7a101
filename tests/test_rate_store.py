import pytest

from tripwallet.models.rates import RateSnapshot
from tripwallet.services.rates.store import STALE_AFTER_NS, RateStore


def test_threshold_is_24_hours_in_nanoseconds():
    assert STALE_AFTER_NS == 24 * 60 * 60 * 10**9


def test_empty_store_is_stale():
    store = RateStore()
    assert store.current() is None
    assert store.is_stale(now=0)
    assert store.available_currencies() == []


def test_staleness_boundary():
    store = RateStore()
    fetched_at = 1_700_000_000_000_000_000
    store.replace(RateSnapshot(table={"EUR": 0.9}, fetched_at=fetched_at))

    assert not store.is_stale(now=fetched_at)
    assert not store.is_stale(now=fetched_at + STALE_AFTER_NS)
    assert store.is_stale(now=fetched_at + STALE_AFTER_NS + 1)


def test_replace_swaps_whole_table():
    store = RateStore(RateSnapshot(table={"EUR": 0.9, "JPY": 150.0}, fetched_at=1))
    store.replace(RateSnapshot(table={"GBP": 0.8}, fetched_at=2))

    current = store.current()
    assert dict(current.table) == {"GBP": 0.8}
    assert current.fetched_at == 2
    assert store.available_currencies() == ["GBP", "USD"]


def test_replace_rejects_non_snapshots():
    with pytest.raises(TypeError):
        RateStore().replace({"EUR": 0.9})


def test_snapshot_table_is_read_only_copy():
    source = {"EUR": 0.9}
    snapshot = RateSnapshot(table=source, fetched_at=1)
    source["EUR"] = 5.0
    assert snapshot.table["EUR"] == 0.9
    with pytest.raises(TypeError):
        snapshot.table["EUR"] = 1.0  # type: ignore[index]


@pytest.mark.parametrize("bad", [0, -1.5, float("nan"), float("inf"), True, "1.2"])
def test_snapshot_rejects_invalid_rates(bad):
    with pytest.raises(ValueError):
        RateSnapshot(table={"EUR": bad}, fetched_at=1)
