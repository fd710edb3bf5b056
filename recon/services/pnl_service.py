# recon/services/pnl_service.py
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional

from recon.enums import Side
from recon.models import DailyPnL, PnLSummary, Trade
from utils.time import utc_date


def pnl_for_day(trades: Iterable[Trade]) -> float:
    """
    Realized P&L of one day's trades: per coin, sell notional minus buy
    notional, summed over coins.
    """
    buy_value: Dict[str, float] = defaultdict(float)
    sell_value: Dict[str, float] = defaultdict(float)
    for t in trades:
        if t.side is Side.BUY:
            buy_value[t.coin] += t.value
        else:
            sell_value[t.coin] += t.value

    coins = sorted(set(buy_value) | set(sell_value))
    return sum(sell_value[c] - buy_value[c] for c in coins)


def daily_pnl_from_trades(trades: Iterable[Trade]) -> Dict[str, DailyPnL]:
    """Group trades by UTC calendar date and compute each date's count and P&L."""
    by_date: Dict[str, List[Trade]] = defaultdict(list)
    for t in trades:
        by_date[utc_date(t.ts)].append(t)

    return {
        date: DailyPnL(date=date, trade_count=len(day), daily_pnl=pnl_for_day(day))
        for date, day in by_date.items()
    }


def build_summary(table: Mapping[str, DailyPnL],
                  *,
                  account: Optional[str] = None,
                  days: Optional[int] = None,
                  updated_ms: Optional[int] = None) -> PnLSummary:
    """
    Running sum of daily P&L in ascending date order, returned most recent
    first with the grand total. Records are copies; ``table`` is not touched.
    """
    cumulative = 0.0
    records: List[DailyPnL] = []
    for date in sorted(table):
        src = table[date]
        cumulative += src.daily_pnl
        records.append(DailyPnL(
            date=src.date,
            trade_count=src.trade_count,
            daily_pnl=src.daily_pnl,
            cumulative_pnl=cumulative,
        ))
    records.reverse()

    total = sum(r.daily_pnl for r in records)
    return PnLSummary(
        daily_records=records,
        total_pnl=total,
        account=account,
        days=days,
        updated_ms=updated_ms,
    )
