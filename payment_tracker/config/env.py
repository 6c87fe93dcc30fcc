"""
Environment variable loading and parsing helpers.

- ETH_NETWORK: mainnet | ropsten | rinkeby | kovan | goerli | sepolia (default: mainnet)
- ETH_RPC_URL: node JSON-RPC endpoint (read from .env)
- ETH_EXPLORER_URL: block explorer base URL; defaults per network
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from payment_tracker.core.exceptions import ConfigError

# Project root: config is payment_tracker/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_NETWORK = "mainnet"
DEFAULT_RPC_URL = "http://localhost:8545"

EXPLORER_URLS = {
    "mainnet": "https://etherscan.io/",
    "ropsten": "https://ropsten.etherscan.io/",
    "rinkeby": "https://rinkeby.etherscan.io/",
    "kovan": "https://kovan.etherscan.io/",
    "goerli": "https://goerli.etherscan.io/",
    "sepolia": "https://sepolia.etherscan.io/",
}

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_tracker_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_int(name: str, default: int, *, minimum: int | None = 0) -> int:
    """Parse an integer env var; raise ConfigError on garbage or values below minimum."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def env_float(name: str, default: float, *, minimum: float | None = 0.0) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def get_eth_network() -> str:
    """Return ETH_NETWORK lower-cased; default mainnet."""
    return env_str("ETH_NETWORK", DEFAULT_NETWORK).lower() or DEFAULT_NETWORK


def get_explorer_url(network: str) -> str:
    """
    Resolve explorer base URL.
    Order: ETH_EXPLORER_URL > per-network default > empty (no links).
    Always ends with '/' so 'tx/<hash>' can be appended.
    """
    url = env_str("ETH_EXPLORER_URL") or EXPLORER_URLS.get(network, "")
    if url and not url.endswith("/"):
        url += "/"
    return url


def mask_url(url: str) -> str:
    """Hide API keys embedded in provider URLs (e.g. https://mainnet.infura.io/v3/<key>)."""
    if "/v3/" in url:
        return url.split("/v3/")[0] + "/v3/***"
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
