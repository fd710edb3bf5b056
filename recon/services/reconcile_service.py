# recon/services/reconcile_service.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from recon.enums import StalePolicy
from recon.models import AccountCache, DailyPnL, PnLSummary, Trade
from recon.services.pnl_service import build_summary, daily_pnl_from_trades
from recon.stores.account_store import AccountStore, filter_trades_by_time, merge_trades
from utils.logger import logger
from utils.time import days_to_ms, ms_to_iso, utc_ms


class _ReadWriteLock:
    """Readers share the lock; a writer excludes readers and other writers."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class ReconciliationStore:
    """
    Per-account trade cache + daily realized P&L table.

    ``reconcile`` refreshes one account's trades from the trade source and
    rebuilds the P&L table from them; ``get_summary`` reads the table of the
    most recent successful reconciliation.

    Refresh policy, in order:
    - no cache, requested window larger than the cached one, or cache stale
      (and stale_policy=FULL): full fetch of the requested window, cache replaced
    - otherwise: incremental fetch since the last fetch, merged into the cache;
      a smaller window is filtered out of the cached superset for P&L, an
      equal window uses the whole cache

    One read/write lock covers all accounts: reconciliations are serialized
    against each other and against summary reads, while reads share the lock.
    A read issued during a reconciliation waits for its table.
    """

    def __init__(self,
                 source,
                 *,
                 stale_after_s: float = 3600.0,
                 stale_policy: StalePolicy = StalePolicy.FULL,
                 clock: Callable[[], int] = utc_ms,
                 accounts: Optional[AccountStore] = None,
                 ) -> None:
        self._source = source
        self._accounts = accounts if accounts is not None else AccountStore()
        self._stale_after_ms = int(stale_after_s * 1000)
        self._stale_policy = stale_policy
        self._clock = clock
        self._lock = _ReadWriteLock()

        self._daily: Dict[str, DailyPnL] = {}
        self._meta: Dict[str, Any] = {}

    @classmethod
    def from_settings(cls, source, settings, **kwargs) -> "ReconciliationStore":
        return cls(
            source,
            stale_after_s=settings.stale_after_s,
            stale_policy=settings.stale_policy,
            **kwargs,
        )

    async def reconcile(self, account: str, days: int) -> None:
        """
        Refresh ``account``'s trades for the last ``days`` days and rebuild the
        daily P&L table. Raises SourceError (cache and table untouched) if the
        trade source fails; ValueError on bad arguments.
        """
        if not account:
            raise ValueError("account is required")
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ValueError(f"days must be a positive integer, got {days!r}")

        async with self._lock.write():
            now = self._clock()
            cache = self._accounts.get(account)

            if self._needs_full_fetch(cache, days, now):
                selected = await self._full_fetch(account, days, now)
            else:
                selected = await self._incremental_fetch(account, cache, days, now)

            self._daily = daily_pnl_from_trades(selected)
            self._meta = {"account": account, "days": days, "updated_ms": now}
            logger.info(
                f"Reconciliation complete for {account}: {len(selected)} trades, {len(self._daily)} days"
            )

    def _needs_full_fetch(self, cache: Optional[AccountCache], days: int, now: int) -> bool:
        if cache is None or cache.last_fetch_ms <= 0:
            return True
        if days > cache.cached_days:
            return True
        stale = now - cache.last_fetch_ms >= self._stale_after_ms
        return stale and self._stale_policy is StalePolicy.FULL

    async def _full_fetch(self, account: str, days: int, now: int) -> List[Trade]:
        logger.info(f"Full fetch for {account}: fetching all trades for last {days} days")
        fetched = await self._source.fetch_range(account, now - days_to_ms(days), now)

        trades = merge_trades([], fetched)
        self._accounts.upsert(account, AccountCache(trades=trades, last_fetch_ms=now, cached_days=days))
        return trades

    async def _incremental_fetch(self, account: str, cache: AccountCache, days: int, now: int) -> List[Trade]:
        logger.info(
            f"Incremental fetch for {account}: new trades since {ms_to_iso(cache.last_fetch_ms)} "
            f"(requested {days} days, cached {cache.cached_days} days)"
        )
        new_trades = await self._source.fetch_range(account, cache.last_fetch_ms, now)

        if new_trades:
            logger.info(f"Found {len(new_trades)} new trades, merging with {len(cache.trades)} cached trades")
            cache.trades = merge_trades(cache.trades, new_trades)
        else:
            logger.info(f"No new trades found, using {len(cache.trades)} cached trades")
        cache.last_fetch_ms = now

        if days == cache.cached_days:
            return list(cache.trades)

        filtered = filter_trades_by_time(cache.trades, now - days_to_ms(days))
        logger.debug(f"Filtered {len(cache.trades)} trades to {len(filtered)} trades for {days} days")
        return filtered

    async def get_summary(self) -> PnLSummary:
        """Daily records, most recent first, with cumulative and total P&L."""
        async with self._lock.read():
            return build_summary(self._daily, **self._meta)

    def cache_info(self, account: str) -> Optional[Dict[str, Any]]:
        cache = self._accounts.get(account)
        if cache is None:
            return None
        return {
            "tradeCount": len(cache.trades),
            "lastFetchMs": cache.last_fetch_ms,
            "cachedDays": cache.cached_days,
        }

    def accounts(self) -> List[str]:
        return self._accounts.list_accounts()
