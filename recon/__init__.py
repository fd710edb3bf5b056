"""
Trade reconciliation package.

Provides:
- Configuration & endpoints for the Hyperliquid info API
- Core domain enums, errors & models (trades, daily P&L)
- Trade source with cursor pagination and request pacing
- Per-account trade cache store with deduplicating merge
- Reconciliation store deciding full vs incremental refresh and
  producing the daily realized P&L summary
"""
