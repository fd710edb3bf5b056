# recon/enums.py
from enum import Enum


class Side(Enum):
    # venue codes: B = bid (buy), A = ask (sell)
    BUY = "B"
    SELL = "A"


class StalePolicy(Enum):
    FULL = "full"
    INCREMENTAL = "incremental"
