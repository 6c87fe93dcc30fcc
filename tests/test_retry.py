"""
Tests for RetryExecutor and transient-error classification.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from payment_tracker.core import retry as retry_module
from payment_tracker.core.exceptions import (
    RpcError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)
from payment_tracker.core.retry import (
    RetryExecutor,
    is_transient_rpc_message,
    is_transient_upstream_error,
)


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://node.local")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


async def test_retry_returns_result_after_transient_failures():
    action = AsyncMock(side_effect=[TransientUpstreamError("502"), TransientUpstreamError("502"), 42])
    executor = RetryExecutor(max_attempts=5, delay_sec=0)

    assert await executor.execute(action) == 42
    assert action.await_count == 3


async def test_retry_gives_up_after_max_attempts():
    last = TransientUpstreamError("bad gateway")
    action = AsyncMock(side_effect=last)
    executor = RetryExecutor(max_attempts=3, delay_sec=0)

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await executor.execute(action, operation="eth_blockNumber")

    assert action.await_count == 3
    assert exc_info.value.attempts == 3
    assert exc_info.value.__cause__ is last
    assert "eth_blockNumber" in str(exc_info.value)


async def test_retry_single_attempt_does_not_retry():
    action = AsyncMock(side_effect=TransientUpstreamError("504"))

    with pytest.raises(UpstreamUnavailableError):
        await RetryExecutor(max_attempts=1, delay_sec=0).execute(action)
    assert action.await_count == 1


async def test_retry_non_transient_error_fails_fast():
    action = AsyncMock(side_effect=RpcError("eth_getBlockByHash: invalid argument", code=-32602))

    with pytest.raises(RpcError):
        await RetryExecutor(max_attempts=5, delay_sec=0).execute(action)
    assert action.await_count == 1


async def test_retry_http_status_classification():
    action = AsyncMock(side_effect=[_status_error(502), _status_error(503), "ok"])
    assert await RetryExecutor(max_attempts=5, delay_sec=0).execute(action) == "ok"

    bad_request = AsyncMock(side_effect=_status_error(400))
    with pytest.raises(httpx.HTTPStatusError):
        await RetryExecutor(max_attempts=5, delay_sec=0).execute(bad_request)
    assert bad_request.await_count == 1


async def test_retry_sleeps_between_attempts(monkeypatch):
    sleeps: list[float] = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    action = AsyncMock(side_effect=TransientUpstreamError("502"))

    with pytest.raises(UpstreamUnavailableError):
        await RetryExecutor(max_attempts=4, delay_sec=0.25).execute(action)

    # no sleep after the final attempt
    assert sleeps == [0.25, 0.25, 0.25]


async def test_retry_custom_classifier():
    action = AsyncMock(side_effect=[KeyError("flaky"), "done"])
    executor = RetryExecutor(max_attempts=2, delay_sec=0, is_retryable=lambda e: isinstance(e, KeyError))

    assert await executor.execute(action) == "done"


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"delay_sec": -1}])
def test_retry_rejects_invalid_config(kwargs):
    with pytest.raises(ValueError):
        RetryExecutor(**kwargs)


def test_is_transient_upstream_error():
    assert is_transient_upstream_error(TransientUpstreamError("x"))
    assert is_transient_upstream_error(_status_error(504))
    assert is_transient_upstream_error(httpx.ReadTimeout("slow"))
    assert not is_transient_upstream_error(_status_error(404))
    assert not is_transient_upstream_error(RpcError("nope"))
    assert not is_transient_upstream_error(ValueError("bad"))


@pytest.mark.parametrize(
    "message, expected",
    [
        ("502 Bad Gateway", True),
        ("upstream returned bad gateway", True),
        ("Gateway Time-out", True),
        ("Service Unavailable", True),
        ("error code 503", True),
        ("execution reverted", False),
        ("invalid argument 0: hex string without 0x prefix", False),
        ("", False),
    ],
)
def test_is_transient_rpc_message(message, expected):
    assert is_transient_rpc_message(message) is expected
