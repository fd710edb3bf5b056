# utils/config.py
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from utils.logger import logger


def _resolve_env(obj):
    if isinstance(obj, dict):
        return {k: _resolve_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_resolve_env(v) for v in obj]
    if isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
        varname = obj[2:-1]
        return os.getenv(varname, "")
    return obj


def load_cfg(cfg_path: str | None = None) -> Dict[str, Any]:
    """
    Load config.yaml (or ``cfg_path``), after pulling variables from the
    repo-level .env. String values of the form ``${VAR}`` are replaced with
    the environment value of VAR (empty string when unset).
    """
    base_dir = Path(__file__).resolve().parents[1]

    cfg_file = Path(cfg_path) if cfg_path else (base_dir / "config.yaml")

    load_dotenv(base_dir / ".env")

    with open(cfg_file, "r", encoding="utf-8") as f:
        raw_cfg = yaml.safe_load(f) or {}

    cfg = _resolve_env(raw_cfg)

    base = (cfg.get("hyperliquid") or {}).get("rest_base", "")
    if base and not str(base).startswith("https://"):
        logger.warning(f"hyperliquid.rest_base is not https: {base}")

    logger.debug(f"Config loaded from {cfg_file}")
    return cfg


def load_cfg_simple() -> Dict[str, Any]:
    with open(Path(__file__).resolve().parents[1] / "config.yaml", "r", encoding="utf-8") as f:
        return yaml.safe_load(f)
