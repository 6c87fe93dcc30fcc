"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and the project .env file.
- Validate values and provide defaults for optional ones.
- Expose typed settings (RPC URL, confirmation depth, retry policy, DB URL, etc.)
  for use across the reader, tracking engine, periodic runner and API server.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from payment_tracker.config.env import (
    DEFAULT_RPC_URL,
    env_bool,
    env_float,
    env_int,
    env_str,
    get_eth_network,
    get_explorer_url,
    load_tracker_env,
)

DEFAULT_CHECKPOINT_SCOPE = "Default"


@dataclass(frozen=True)
class Settings:
    """Typed, validated job settings."""

    eth_rpc_url: str = DEFAULT_RPC_URL
    eth_network: str = "mainnet"
    explorer_url: str = ""
    confirmation_limit: int = 12
    """Blocks of lag behind the chain tip before a block is eligible."""
    start_height: int = 0
    """Floor height; the engine never processes blocks at or below it."""
    tracking_interval_sec: float = 30.0
    retry_max_attempts: int = 5
    retry_delay_ms: int = 500
    use_trace_filter: bool = True
    """True: trace_filter (includes inner calls); False: top-level transactions only."""
    instance_id: str = ""
    checkpoint_per_block: bool = True
    advance_on_missing_block: bool = False
    require_investor: bool = True
    database_url: str = "sqlite:///payment_tracker.db"
    payment_sink_url: str = ""
    """Webhook for payment events; required unless a sink is passed to build_services()."""
    rpc_timeout_sec: float = 30.0
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def checkpoint_scope(self) -> str:
        """Partition key for the checkpoint row: instance id or 'Default'."""
        return self.instance_id or DEFAULT_CHECKPOINT_SCOPE

    @property
    def retry_delay_sec(self) -> float:
        return self.retry_delay_ms / 1000.0


def load_settings() -> Settings:
    """Build Settings from the current environment (no caching)."""
    load_tracker_env()
    network = get_eth_network()
    return Settings(
        eth_rpc_url=env_str("ETH_RPC_URL", DEFAULT_RPC_URL),
        eth_network=network,
        explorer_url=get_explorer_url(network),
        confirmation_limit=env_int("CONFIRMATION_LIMIT", 12),
        start_height=env_int("START_HEIGHT", 0),
        tracking_interval_sec=env_float("TRACKING_INTERVAL_SEC", 30.0, minimum=1.0),
        retry_max_attempts=env_int("RETRY_MAX_ATTEMPTS", 5, minimum=1),
        retry_delay_ms=env_int("RETRY_DELAY_MS", 500),
        use_trace_filter=env_bool("USE_TRACE_FILTER", True),
        instance_id=env_str("INSTANCE_ID"),
        checkpoint_per_block=env_bool("CHECKPOINT_PER_BLOCK", True),
        advance_on_missing_block=env_bool("ADVANCE_ON_MISSING_BLOCK", False),
        require_investor=env_bool("REQUIRE_INVESTOR", True),
        database_url=env_str("DATABASE_URL", "sqlite:///payment_tracker.db"),
        payment_sink_url=env_str("PAYMENT_SINK_URL"),
        rpc_timeout_sec=env_float("RPC_TIMEOUT_SEC", 30.0, minimum=1.0),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("API_PORT", 8000, minimum=1),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings (cached per process).

    Raises:
        ConfigError: a variable is present but malformed or out of range.
    """
    return load_settings()


def reset_settings_cache() -> None:
    """Drop the cached Settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
