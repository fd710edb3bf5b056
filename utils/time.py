# utils/time.py
from datetime import datetime, timezone

DAY_MS = 86_400_000


def utc_ms() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp() * 1000)


def days_to_ms(days: int) -> int:
    return int(days) * DAY_MS


def utc_date(ts_ms: int) -> str:
    """Calendar date (YYYY-MM-DD) of an epoch-ms timestamp, UTC day boundary."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def ms_to_iso(ts_ms: int) -> str:
    t = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
    return t.isoformat(timespec="milliseconds").replace("+00:00", "Z")
