# recon/services/endpoints.py
from dataclasses import dataclass


@dataclass
class Endpoints:
    # API host
    rest_base: str

    # REST path and request types
    info: str = "/info"
    user_fills_by_time: str = "userFillsByTime"


def make_endpoints_from_cfg(cfg: dict) -> Endpoints:
    try:
        hl_cfg = cfg["hyperliquid"]
        rest_base = str(hl_cfg["rest_base"]).rstrip("/")
        info = str(hl_cfg.get("info_path") or "/info")
    except KeyError as e:
        raise ValueError(f"Invalid cfg missing key: {e}") from e

    if not info.startswith("/"):
        info = "/" + info

    return Endpoints(rest_base=rest_base, info=info)
