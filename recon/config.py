# recon/config.py
from dataclasses import dataclass
from typing import Any, Mapping

from recon.enums import StalePolicy


@dataclass
class ReconSettings:
    """Reconciliation runtime configuration."""
    default_days: int = 10
    page_limit: int = 2000            # max fills per userFillsByTime response
    pacing_ms: int = 300              # sleep between page requests
    stale_after_s: float = 3600.0     # cache older than this is stale
    stale_policy: StalePolicy = StalePolicy.FULL
    poll_interval_s: float = 60.0


def make_settings_from_cfg(cfg: Mapping[str, Any]) -> ReconSettings:
    recon_cfg = cfg.get("recon", {}) or {}
    runner_cfg = cfg.get("runner", {}) or {}
    try:
        settings = ReconSettings(
            default_days=int(recon_cfg.get("default_days", 10)),
            page_limit=int(recon_cfg.get("page_limit", 2000)),
            pacing_ms=int(recon_cfg.get("pacing_ms", 300)),
            stale_after_s=float(recon_cfg.get("stale_after_s", 3600)),
            stale_policy=StalePolicy(str(recon_cfg.get("stale_policy", "full")).lower()),
            poll_interval_s=float(runner_cfg.get("poll_interval_s", 60)),
        )
    except ValueError as e:
        raise ValueError(f"Invalid recon cfg: {e}") from e

    if settings.default_days <= 0 or settings.page_limit <= 0:
        raise ValueError("recon.default_days and recon.page_limit must be positive")
    if settings.pacing_ms < 0 or settings.stale_after_s < 0:
        raise ValueError("recon.pacing_ms and recon.stale_after_s must not be negative")
    return settings
