"""
TOML-based configuration for the VelCoin wallet.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from velcoin_core.config import load_config
    cfg = load_config("velcoin.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import,no-redef]

from velcoin_core.node_client import DEFAULT_NODE_URL, DEFAULT_TIMEOUT


@dataclass
class NodeConfig:
    """Remote ledger node."""
    url: str = DEFAULT_NODE_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class StorageConfig:
    """Where the wallet and history keys live."""
    backend: str = "sqlite"   # "sqlite" or "memory"
    path: str = "data/velcoin.db"


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class VelcoinConfig:
    """Top-level configuration container."""
    node: NodeConfig = field(default_factory=NodeConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def load_config(path: str | None = None) -> VelcoinConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        VELCOIN_NODE_URL         -> node.url
        VELCOIN_NODE_TIMEOUT     -> node.timeout
        VELCOIN_STORAGE_BACKEND  -> storage.backend
        VELCOIN_DB_PATH          -> storage.path
        VELCOIN_LOG_LEVEL        -> logging.level
        VELCOIN_LOG_FMT          -> logging.format
    """
    cfg = VelcoinConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("node", cfg.node),
                ("storage", cfg.storage),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("VELCOIN_NODE_URL"):
        cfg.node.url = v
    if v := os.environ.get("VELCOIN_NODE_TIMEOUT"):
        cfg.node.timeout = float(v)
    if v := os.environ.get("VELCOIN_STORAGE_BACKEND"):
        cfg.storage.backend = v
    if v := os.environ.get("VELCOIN_DB_PATH"):
        cfg.storage.path = v
    if v := os.environ.get("VELCOIN_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("VELCOIN_LOG_FMT"):
        cfg.logging.format = v

    return cfg
