"""Opt-out configuration.

The flag lives in <dir>/.usagestats/config.json as {"usage_statistics": bool}.
USAGESTATS_TELEMETRY=off in the environment wins over the file.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CONFIG_DIR = ".usagestats"
CONFIG_FILE = "config.json"
CONFIG_KEY = "usage_statistics"
ENV_OVERRIDE = "USAGESTATS_TELEMETRY"


def get_config_path(path: str = ".") -> str:
    """Get the path to the config file for a directory."""
    return os.path.join(os.path.abspath(path), CONFIG_DIR, CONFIG_FILE)


def load_config(config_path: str) -> dict:
    """Load config from file, returning empty dict if not found or unreadable."""
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Ignoring unreadable config %s: %s", config_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config_path: str, cfg: dict) -> None:
    """Save config to file."""
    os.makedirs(os.path.dirname(config_path), exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)


def env_opted_out() -> bool:
    """True when the environment override switches usage statistics off."""
    return os.environ.get(ENV_OVERRIDE, "").lower() == "off"


@dataclass
class UsageStatsConfig:
    """Whether usage statistics may be collected. Call it to read the flag."""
    collect: bool = True

    def __call__(self) -> bool:
        return self.collect

    @classmethod
    def from_dir(cls, path: str = ".") -> "UsageStatsConfig":
        cfg = load_config(get_config_path(path))
        collect = bool(cfg.get(CONFIG_KEY, True)) and not env_opted_out()
        return cls(collect=collect)
