# tests/conftest.py
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import logging
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from infra.http_client import HttpClient
from recon.models import Trade
from utils.config import load_cfg_simple


def ts_ms(value: str) -> int:
    """'2025-01-01T10:00:00Z' -> epoch ms."""
    t = datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)
    return int(t.timestamp() * 1000)


def make_trade(time_str: str, coin: str, side: str, px: float, sz: float) -> Trade:
    return Trade.create(ts_ms(time_str), coin, side, px, sz)


@pytest.fixture
def test_cfg():
    cfg = load_cfg_simple()
    # tests never wait on real backoff / timeouts
    cfg["retries"] = {"rest_max_attempts": 3, "backoff_ms": 1}
    return cfg


@pytest_asyncio.fixture
async def http_client(test_cfg):
    """
    HttpClient managed as an async context so every test closes its session.
    """
    logger = logging.getLogger("HttpClientTest")
    async with HttpClient(test_cfg, logger=logger) as client:
        yield client
