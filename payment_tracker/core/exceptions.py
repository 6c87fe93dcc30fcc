"""
Application-level exceptions.

Transient upstream failures are retried by the RetryExecutor; everything else
propagates to the caller (periodic runner or admin API) for logging.
Block not found is not an exception: readers return None.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for payment tracker errors."""


class TransientUpstreamError(TrackerError):
    """Node or gateway reported a temporary failure (e.g. 502 Bad Gateway)."""


class UpstreamUnavailableError(TrackerError):
    """A transient upstream failure persisted after all retry attempts."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class RpcError(TrackerError):
    """JSON-RPC error payload that is not classified as transient."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(f"{message} (code={code})")
        self.code = code


class InvalidRangeError(TrackerError, ValueError):
    """Block range is inverted (from_height > to_height)."""

    def __init__(self, from_height: int, to_height: int) -> None:
        super().__init__(
            f"Invalid block range: from_height={from_height} is greater than to_height={to_height}"
        )
        self.from_height = from_height
        self.to_height = to_height


class ConfigError(TrackerError, ValueError):
    """Invalid configuration value."""
