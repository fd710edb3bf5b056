# recon/services/trade_source.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from infra import HttpPort
from infra.http_client import HttpError
from recon.errors import SourceError
from recon.models import Trade
from utils.logger import logger
from utils.time import days_to_ms, ms_to_iso, utc_ms


class HyperliquidTradeSource:
    """
    Pulls an account's fills for a time window from POST /info
    (type=userFillsByTime), walking the window page by page.

    Stateless across calls; safe to share between stores.
    """

    def __init__(self, http_client: HttpPort, endpoints, *, page_limit: int = 2000, pacing_ms: int = 300) -> None:
        if page_limit <= 0:
            raise ValueError("page_limit must be positive")
        self._http = http_client
        self._ep = endpoints
        self.page_limit = int(page_limit)
        self.pacing_ms = max(0, int(pacing_ms))

    async def fetch_days(self, address: str, days: int, *, now_ms: Optional[int] = None) -> List[Trade]:
        """All fills of the last ``days`` days up to ``now_ms`` (default: now)."""
        end = now_ms if now_ms is not None else utc_ms()
        return await self.fetch_range(address, end - days_to_ms(days), end)

    async def fetch_range(self, address: str, start_ms: int, end_ms: int) -> List[Trade]:
        """
        Fetch every fill in [start_ms, end_ms], ascending by time.

        Pagination: the cursor starts at ``start_ms``; an empty page or a page
        shorter than ``page_limit`` ends the walk, otherwise the cursor moves
        to the last fill's time + 1 ms. Requests after the first are paced by
        ``pacing_ms``. Unparseable fills are logged and skipped.

        Raises SourceError when any page cannot be retrieved.
        """
        logger.info(f"Fetching trades for {address} from {ms_to_iso(start_ms)} to {ms_to_iso(end_ms)}")

        trades: List[Trade] = []
        cursor = int(start_ms)
        batch_count = 0
        skipped = 0
        while True:
            if batch_count > 0:
                await self._pace()
            batch_count += 1

            fills = await self._fetch_batch(address, cursor, end_ms, batch_count)
            if not fills:
                break

            for fill in fills:
                try:
                    trades.append(Trade.from_fill(fill))
                except (ValueError, TypeError, AttributeError) as e:
                    skipped += 1
                    logger.warning(f"Failed to convert fill, skipping: {e} fill={fill}")

            if len(fills) < self.page_limit:
                break

            last_time = fills[-1].get("time") if isinstance(fills[-1], dict) else None
            if isinstance(last_time, bool) or not isinstance(last_time, int):
                raise SourceError(
                    f"failed to fetch batch {batch_count}: last fill has no usable time ({last_time!r})"
                )
            cursor = last_time + 1

        logger.info(
            f"Fetched {len(trades)} trades in {batch_count} batches for {address}"
            + (f" ({skipped} skipped)" if skipped else "")
        )
        return trades

    async def _fetch_batch(self, address: str, start_ms: int, end_ms: int, batch_no: int) -> List[Dict[str, Any]]:
        body = {
            "type": self._ep.user_fills_by_time,
            "user": address,
            "startTime": int(start_ms),
            "endTime": int(end_ms),
            "aggregateByTime": True,
        }
        try:
            payload = await self._http.post_info(body, path=self._ep.info)
        except HttpError as e:
            raise SourceError.from_http(e, f"failed to fetch batch {batch_no}") from e

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise SourceError(
                f"failed to fetch batch {batch_no}: unexpected payload type {type(payload).__name__}"
            )
        logger.debug(f"Batch {batch_no}: {len(payload)} fills from {ms_to_iso(start_ms)}")
        return payload

    async def _pace(self) -> None:
        await asyncio.sleep(self.pacing_ms / 1000.0)
