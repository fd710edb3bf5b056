# recon/models.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from recon.enums import Side


class TradeKey(NamedTuple):
    """Identity of a fill for deduplication: same ms, coin and side = same trade."""
    ts: int
    coin: str
    side: Side


def _parse_positive(raw: Any, name: str) -> float:
    try:
        v = float(str(raw).strip())
    except (TypeError, ValueError) as e:
        raise ValueError(f"failed to parse {name} {raw!r}") from e
    if not math.isfinite(v) or v <= 0:
        raise ValueError(f"{name} must be a positive number, got {raw!r}")
    return v


def _to_float_or_none(x) -> Optional[float]:
    if x is None:
        return None
    x = str(x).strip()
    if not x:
        return None
    try:
        return float(x)
    except ValueError:
        return None


@dataclass(frozen=True)
class Trade:
    ts: int          # fill time, epoch ms (UTC)
    coin: str
    side: Side
    px: float
    sz: float
    value: float     # notional, px * sz
    # informational only, never part of identity or P&L
    direction: Optional[str] = field(default=None, compare=False)
    closed_pnl: Optional[float] = field(default=None, compare=False)

    @property
    def key(self) -> TradeKey:
        return TradeKey(self.ts, self.coin, self.side)

    @classmethod
    def create(cls, ts: int, coin: str, side: Side | str, px: float, sz: float) -> "Trade":
        side = side if isinstance(side, Side) else Side(side)
        return cls(ts=int(ts), coin=coin, side=side, px=float(px), sz=float(sz), value=float(px) * float(sz))

    @classmethod
    def from_fill(cls, fill: Mapping[str, Any]) -> "Trade":
        """
        Build a Trade from one venue fill:
        {"time": 1700000000000, "coin": "BTC", "side": "B", "px": "50000.0", "sz": "0.1", ...}
        Raises ValueError if any required field is missing or unparseable.
        """
        ts = fill.get("time")
        if isinstance(ts, bool) or not isinstance(ts, int):
            raise ValueError(f"fill time must be integer ms, got {ts!r}")
        coin = fill.get("coin")
        if not coin:
            raise ValueError("fill has no coin")
        try:
            side = Side(fill.get("side"))
        except ValueError as e:
            raise ValueError(f"unknown fill side {fill.get('side')!r}") from e
        px = _parse_positive(fill.get("px"), "price")
        sz = _parse_positive(fill.get("sz"), "size")
        return cls(
            ts=ts,
            coin=str(coin),
            side=side,
            px=px,
            sz=sz,
            value=px * sz,
            direction=fill.get("dir") or None,
            closed_pnl=_to_float_or_none(fill.get("closedPnl")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.ts,
            "coin": self.coin,
            "side": self.side.value,
            "px": self.px,
            "sz": self.sz,
            "value": self.value,
        }


@dataclass
class AccountCache:
    """Cached trades of one account. ``trades`` is ascending by ts and unique by key."""
    trades: List[Trade] = field(default_factory=list)
    last_fetch_ms: int = 0
    cached_days: int = 0  # days of history the trades are known to cover


@dataclass
class DailyPnL:
    date: str                   # YYYY-MM-DD, UTC
    trade_count: int
    daily_pnl: float
    cumulative_pnl: float = 0.0 # filled when the summary is read

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "tradeCount": self.trade_count,
            "dailyPnL": self.daily_pnl,
            "cumulativePnL": self.cumulative_pnl,
        }


@dataclass
class PnLSummary:
    daily_records: List[DailyPnL]   # most recent date first
    total_pnl: float
    account: Optional[str] = None
    days: Optional[int] = None
    updated_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "dailyRecords": [r.to_dict() for r in self.daily_records],
            "totalPnL": self.total_pnl,
        }
        if self.account is not None:
            out["account"] = self.account
        if self.days is not None:
            out["days"] = self.days
        if self.updated_ms is not None:
            out["updatedAt"] = self.updated_ms
        return out
