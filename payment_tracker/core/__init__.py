"""
Core utilities: exceptions and retry policy shared by the reader, engine and API.
"""

from payment_tracker.core.exceptions import (
    ConfigError,
    InvalidRangeError,
    RpcError,
    TrackerError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)
from payment_tracker.core.retry import RetryExecutor, is_transient_upstream_error

__all__ = [
    "ConfigError",
    "InvalidRangeError",
    "RetryExecutor",
    "RpcError",
    "TrackerError",
    "TransientUpstreamError",
    "UpstreamUnavailableError",
    "is_transient_upstream_error",
]
