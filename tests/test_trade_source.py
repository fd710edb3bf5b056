# tests/test_trade_source.py
import pytest

from infra.http_client import HttpError
from recon.enums import Side
from recon.errors import SourceError
from recon.services.endpoints import Endpoints
from recon.services.trade_source import HyperliquidTradeSource


def fill(t, coin="BTC", side="B", px="50000", sz="0.1", **extra):
    return {"time": t, "coin": coin, "side": side, "px": px, "sz": sz, **extra}


class FakeHttp:
    """Replays queued pages for POST /info and records every request body."""
    def __init__(self, pages):
        self._pages = list(pages)
        self.bodies = []

    async def post_info(self, json_body, path="/info"):
        assert path == "/info"
        self.bodies.append(dict(json_body))
        item = self._pages.pop(0) if self._pages else []
        if isinstance(item, Exception):
            raise item
        return item


def make_source(http, *, page_limit=3, pacing_ms=300):
    src = HyperliquidTradeSource(http, Endpoints(rest_base="https://api.hyperliquid.xyz"),
                                 page_limit=page_limit, pacing_ms=pacing_ms)
    src.paced = 0

    async def _no_sleep():
        src.paced += 1
    src._pace = _no_sleep
    return src


@pytest.mark.asyncio
async def test_single_short_page_stops_without_pacing():
    http = FakeHttp([[fill(1000), fill(2000, side="A", px="51000")]])
    src = make_source(http)

    trades = await src.fetch_range("0xabc", 0, 10_000)

    assert [t.ts for t in trades] == [1000, 2000]
    assert trades[1].side is Side.SELL
    assert trades[1].value == pytest.approx(5100.0)
    assert len(http.bodies) == 1
    assert src.paced == 0
    assert http.bodies[0] == {
        "type": "userFillsByTime",
        "user": "0xabc",
        "startTime": 0,
        "endTime": 10_000,
        "aggregateByTime": True,
    }


@pytest.mark.asyncio
async def test_full_pages_advance_cursor_past_last_fill():
    http = FakeHttp([
        [fill(100), fill(200), fill(300)],
        [fill(400), fill(500), fill(600)],
        [fill(700)],
    ])
    src = make_source(http)

    trades = await src.fetch_range("0xabc", 50, 10_000)

    assert [t.ts for t in trades] == [100, 200, 300, 400, 500, 600, 700]
    assert [b["startTime"] for b in http.bodies] == [50, 301, 601]
    assert all(b["endTime"] == 10_000 for b in http.bodies)
    # pacing only between requests
    assert src.paced == 2


@pytest.mark.asyncio
async def test_exact_multiple_of_page_limit_costs_one_empty_request():
    http = FakeHttp([[fill(100), fill(200), fill(300)], []])
    src = make_source(http)

    trades = await src.fetch_range("0xabc", 0, 10_000)

    assert len(trades) == 3
    assert len(http.bodies) == 2
    assert http.bodies[1]["startTime"] == 301


@pytest.mark.asyncio
async def test_empty_range():
    http = FakeHttp([[]])
    src = make_source(http)
    assert await src.fetch_range("0xabc", 0, 10_000) == []
    assert len(http.bodies) == 1


@pytest.mark.asyncio
async def test_unparseable_fills_are_skipped():
    http = FakeHttp([[
        fill(100),
        fill(200, px="not-a-number"),
        fill(300, sz=""),
        fill(400, side="X"),
        "garbage",
        fill(500, side="A", closedPnl="12.5", dir="Close Long"),
    ]])
    src = make_source(http, page_limit=10)

    trades = await src.fetch_range("0xabc", 0, 10_000)

    assert [t.ts for t in trades] == [100, 500]
    assert trades[1].closed_pnl == pytest.approx(12.5)
    assert trades[1].direction == "Close Long"


@pytest.mark.asyncio
async def test_skipped_fill_still_counts_toward_page_size():
    # a bad fill in a full page must not end pagination early
    http = FakeHttp([
        [fill(100), fill(200, px="bad"), fill(300)],
        [fill(400)],
    ])
    src = make_source(http)

    trades = await src.fetch_range("0xabc", 0, 10_000)

    assert [t.ts for t in trades] == [100, 300, 400]
    assert len(http.bodies) == 2


@pytest.mark.asyncio
async def test_http_error_becomes_classified_source_error():
    http = FakeHttp([
        [fill(100), fill(200), fill(300)],
        HttpError(429, "rate limited"),
    ])
    src = make_source(http)

    with pytest.raises(SourceError) as ei:
        await src.fetch_range("0xabc", 0, 10_000)

    err = ei.value
    assert err.status == 429
    assert err.rate_limited and err.retriable
    assert "batch 2" in str(err)


@pytest.mark.asyncio
async def test_non_list_payload_is_source_error():
    http = FakeHttp([{"error": "unexpected"}])
    src = make_source(http)

    with pytest.raises(SourceError) as ei:
        await src.fetch_range("0xabc", 0, 10_000)
    assert not ei.value.retriable


@pytest.mark.asyncio
async def test_full_page_without_cursor_time_is_source_error():
    http = FakeHttp([[fill(100), fill(200), {"coin": "BTC"}]])
    src = make_source(http)

    with pytest.raises(SourceError):
        await src.fetch_range("0xabc", 0, 10_000)


@pytest.mark.asyncio
async def test_fetch_days_window():
    http = FakeHttp([[]])
    src = make_source(http)
    now = 1_700_000_000_000

    await src.fetch_days("0xabc", 7, now_ms=now)

    assert http.bodies[0]["startTime"] == now - 7 * 86_400_000
    assert http.bodies[0]["endTime"] == now


def test_page_limit_must_be_positive():
    with pytest.raises(ValueError):
        HyperliquidTradeSource(FakeHttp([]), Endpoints(rest_base=""), page_limit=0)
