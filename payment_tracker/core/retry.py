"""
Bounded retry for upstream node calls.

Only errors classified as transient (gateway errors, timeouts) are retried;
anything else, such as a malformed request, fails fast. When a transient error
persists past max_attempts, UpstreamUnavailableError is raised from the last error.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import httpx

from payment_tracker.core.exceptions import TransientUpstreamError, UpstreamUnavailableError
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_DELAY_SEC = 0.5

TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})
_TRANSIENT_MESSAGE_RE = re.compile(
    r"bad gateway|gateway time-?out|service unavailable|\b50[234]\b",
    re.IGNORECASE,
)


def is_transient_upstream_error(error: BaseException) -> bool:
    """Return True if the error looks like a temporary upstream unavailability."""
    if isinstance(error, TransientUpstreamError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in TRANSIENT_STATUS_CODES
    if isinstance(error, httpx.TimeoutException):
        return True
    return False


def is_transient_rpc_message(message: str) -> bool:
    """Return True if a JSON-RPC error message reports a gateway-style failure."""
    return bool(_TRANSIENT_MESSAGE_RE.search(message or ""))


@dataclass
class RetryExecutor:
    """Invoke async actions with bounded retries on classified-transient errors."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_sec: float = DEFAULT_DELAY_SEC
    is_retryable: Callable[[BaseException], bool] = field(
        default=is_transient_upstream_error
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_sec < 0:
            raise ValueError("delay_sec must be non-negative")

    async def execute(
        self,
        action: Callable[[], Awaitable[T]],
        *,
        operation: str = "upstream_call",
    ) -> T:
        """
        Await action() until it succeeds, a non-retryable error occurs,
        or max_attempts is reached.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await action()
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        "retry_give_up",
                        operation=operation,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise UpstreamUnavailableError(
                        f"{operation} failed after {attempt} attempts: {e}",
                        attempts=attempt,
                    ) from e
                logger.warning(
                    "retry_transient_error",
                    operation=operation,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=str(e),
                )
                if self.delay_sec > 0:
                    await asyncio.sleep(self.delay_sec)
