# tests/test_account_store.py
from dataclasses import replace

from conftest import make_trade, ts_ms
from recon.models import AccountCache
from recon.stores.account_store import AccountStore, filter_trades_by_time, merge_trades


def sample():
    return [
        make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1),
        make_trade("2025-01-02T10:00:00Z", "BTC", "A", 51000, 1),
        make_trade("2025-01-03T10:00:00Z", "ETH", "B", 3000, 2),
    ]


# ---- filter ----------------------------------------------------------------

def test_filter_includes_trades_after_cutoff():
    filtered = filter_trades_by_time(sample(), ts_ms("2025-01-02T00:00:00Z"))
    assert len(filtered) == 2


def test_filter_includes_trade_equal_to_cutoff():
    trades = [
        make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1),
        make_trade("2025-01-02T00:00:00Z", "BTC", "A", 51000, 1),
    ]
    filtered = filter_trades_by_time(trades, ts_ms("2025-01-02T00:00:00Z"))
    assert len(filtered) == 1
    assert filtered[0].coin == "BTC" and filtered[0].side.value == "A"


def test_filter_empty_and_all_excluded():
    assert filter_trades_by_time([], ts_ms("2025-01-01T00:00:00Z")) == []
    assert filter_trades_by_time(sample(), ts_ms("2025-02-01T00:00:00Z")) == []


def test_filter_is_order_preserving_subsequence():
    trades = sample()
    cutoff = ts_ms("2025-01-01T12:00:00Z")
    filtered = filter_trades_by_time(trades, cutoff)
    assert all(t.ts >= cutoff for t in filtered)
    assert filtered == [t for t in trades if t in filtered]


# ---- merge -----------------------------------------------------------------

def test_merge_non_overlapping_sorted():
    existing = [make_trade("2025-01-02T10:00:00Z", "BTC", "A", 51000, 1)]
    new = [make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1)]
    merged = merge_trades(existing, new)
    assert len(merged) == 2
    assert merged[0].ts < merged[1].ts


def test_merge_deduplicates_identical_trades():
    t = make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1)
    assert merge_trades([t], [t]) == [t]


def test_merge_with_itself_is_identity():
    trades = sample()
    assert merge_trades(trades, trades) == trades


def test_merge_subset_keeps_size():
    trades = sample()
    assert len(merge_trades(trades, trades[1:])) == len(trades)


def test_merge_new_copy_wins_on_same_key():
    old = make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1)
    revised = replace(old, px=50010.0, value=50010.0)
    merged = merge_trades([old], [revised])
    assert len(merged) == 1
    assert merged[0].px == 50010.0


def test_merge_same_ms_different_side_or_coin_are_distinct():
    a = make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1)
    b = make_trade("2025-01-01T10:00:00Z", "BTC", "A", 50000, 1)
    c = make_trade("2025-01-01T10:00:00Z", "ETH", "B", 3000, 1)
    assert len(merge_trades([a], [b, c])) == 3


def test_merge_empty_sides():
    t = make_trade("2025-01-01T10:00:00Z", "BTC", "B", 50000, 1)
    assert merge_trades([], [t]) == [t]
    assert merge_trades([t], []) == [t]
    assert merge_trades([], []) == []


def test_merge_output_ascending():
    existing = [make_trade("2025-01-03T10:00:00Z", "BTC", "B", 50000, 1)]
    new = [
        make_trade("2025-01-01T10:00:00Z", "ETH", "A", 3000, 1),
        make_trade("2025-01-02T10:00:00Z", "BTC", "A", 51000, 1),
    ]
    merged = merge_trades(existing, new)
    assert [t.ts for t in merged] == sorted(t.ts for t in merged)
    assert len(merged) == 3


# ---- store -----------------------------------------------------------------

def test_account_store_upsert_get():
    store = AccountStore()
    assert store.get("0xabc") is None
    cache = AccountCache(trades=sample(), last_fetch_ms=1, cached_days=30)
    store.upsert("0xabc", cache)
    assert store.get("0xabc") is cache
    assert "0xabc" in store
    assert store.list_accounts() == ["0xabc"]
    assert len(store) == 1
