# app/run_pnl_report.py
import argparse
import asyncio
import json
import sys

from infra import HttpContainer
from recon.config import make_settings_from_cfg
from recon.errors import SourceError
from recon.models import PnLSummary
from recon.services.endpoints import make_endpoints_from_cfg
from recon.services.reconcile_service import ReconciliationStore
from recon.services.trade_source import HyperliquidTradeSource
from utils import logger, load_cfg

_GREEN = "\033[32m"
_RED = "\033[31m"
_RESET = "\033[0m"


def render_summary(summary: PnLSummary) -> str:
    lines = [f"{'date':<12}{'trades':>8}{'daily P&L':>16}{'cumulative':>16}"]
    for r in summary.daily_records:
        color = _GREEN if r.daily_pnl >= 0 else _RED
        lines.append(
            f"{r.date:<12}{r.trade_count:>8}{color}{r.daily_pnl:>16.2f}{_RESET}{r.cumulative_pnl:>16.2f}"
        )
    lines.append(f"{'total':<20}{summary.total_pnl:>16.2f}")
    return "\n".join(lines)


async def run(cfg: dict, address: str, days: int, *, once: bool,
              interval_s: float | None, as_json: bool) -> int:
    settings = make_settings_from_cfg(cfg)
    endpoints = make_endpoints_from_cfg(cfg)
    interval = interval_s if interval_s is not None else settings.poll_interval_s

    container = await HttpContainer.start(cfg)
    try:
        source = HyperliquidTradeSource(
            container.http, endpoints,
            page_limit=settings.page_limit, pacing_ms=settings.pacing_ms,
        )
        store = ReconciliationStore.from_settings(source, settings)
        logger.info(f"Reconciling {address} ({days} days) against {endpoints.rest_base}{endpoints.info}")

        while True:
            try:
                await store.reconcile(address, days)
            except SourceError as e:
                if not e.retriable:
                    logger.error(f"Reconciliation failed for {address} (days={days}): {e}")
                    return 1
                logger.warning(f"Reconciliation failed for {address} (days={days}), will retry: {e}")
                if once:
                    return 1
            else:
                summary = await store.get_summary()
                if as_json:
                    print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
                else:
                    print(render_summary(summary))
                if once:
                    return 0
            await asyncio.sleep(interval)
    finally:
        await container.stop()


def main() -> None:
    ap = argparse.ArgumentParser(description="Reconcile Hyperliquid fills and print daily realized P&L.")
    ap.add_argument("--address", default=None, help="account address (default: runner.address from config)")
    ap.add_argument("--days", type=int, default=None, help="history window in days")
    ap.add_argument("--config", default=None, help="path to config.yaml")
    ap.add_argument("--interval", type=float, default=None, help="poll interval in seconds")
    ap.add_argument("--once", action="store_true", help="reconcile once and exit")
    ap.add_argument("--json", action="store_true", help="print the summary as JSON")
    args = ap.parse_args()

    cfg = load_cfg(args.config)
    address = args.address or (cfg.get("runner") or {}).get("address")
    if not address:
        ap.error("--address is required (or set runner.address / HL_ADDRESS)")
    days = args.days if args.days is not None else make_settings_from_cfg(cfg).default_days
    if days <= 0:
        ap.error("--days must be a positive integer")

    try:
        code = asyncio.run(run(cfg, address, days, once=args.once,
                               interval_s=args.interval, as_json=args.json))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
