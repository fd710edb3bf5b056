# recon/stores/account_store.py
from typing import Dict, Iterable, List, Optional

from recon.models import AccountCache, Trade, TradeKey


def merge_trades(existing: Iterable[Trade], new: Iterable[Trade]) -> List[Trade]:
    """
    Union of two trade sequences keyed by TradeKey, sorted ascending by time.
    A trade in ``new`` replaces an ``existing`` trade with the same key.
    """
    by_key: Dict[TradeKey, Trade] = {}
    for t in existing:
        by_key[t.key] = t
    for t in new:
        by_key[t.key] = t
    return sorted(by_key.values(), key=lambda t: t.ts)


def filter_trades_by_time(trades: Iterable[Trade], cutoff_ms: int) -> List[Trade]:
    """Trades with ts >= cutoff_ms, in their original order."""
    return [t for t in trades if t.ts >= cutoff_ms]


class AccountStore:
    """
    In-memory trade cache keyed by account address.
    """

    def __init__(self) -> None:
        self._data: Dict[str, AccountCache] = {}

    def upsert(self, address: str, cache: AccountCache) -> None:
        self._data[address] = cache

    def get(self, address: str) -> Optional[AccountCache]:
        return self._data.get(address)

    def list_accounts(self) -> List[str]:
        return list(self._data.keys())

    def __contains__(self, address: str) -> bool:
        return address in self._data

    def __len__(self) -> int:
        return len(self._data)
