"""
Ethereum blockchain reader — JSON-RPC over httpx.

Responsibilities:
- Define the BlockchainReader contract consumed by the tracking engine.
- Talk to an Ethereum node (eth_blockNumber, eth_getBlockBy*, trace_filter).
- Select the extraction strategy (trace-based vs top-level transactions) by flag.
- Wrap every call in RetryExecutor so gateway hiccups do not abort a scan.
"""

from __future__ import annotations

import itertools
from typing import Any, Protocol

import httpx

from payment_tracker.core.exceptions import RpcError, TransientUpstreamError
from payment_tracker.core.retry import RetryExecutor, is_transient_rpc_message
from payment_tracker.eth_reader.models import BlockInfo, PaymentCandidate
from payment_tracker.eth_reader.parser import (
    filter_payments,
    hex_to_int,
    parse_block,
    parse_block_transactions,
    parse_traces,
)
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0


class BlockchainReader(Protocol):
    """Read-only view of the chain used by the tracking engine."""

    async def get_last_confirmed_height(self, confirmation_limit: int) -> int:
        ...

    async def get_block_by_height(self, height: int) -> BlockInfo | None:
        ...

    async def get_block_by_id(self, block_id: str) -> BlockInfo | None:
        ...

    async def get_block_transactions(
        self, height: int, payments_only: bool = True
    ) -> list[PaymentCandidate]:
        ...


class EthereumRpcReader:
    """
    BlockchainReader backed by a single long-lived httpx.AsyncClient.

    The client is owned by the reader: close it with aclose() or use the reader
    as an async context manager. Pass client= to share or mock the transport.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        use_trace_filter: bool = True,
        retry: RetryExecutor | None = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip()
        self._use_trace_filter = use_trace_filter
        self._retry = retry or RetryExecutor()
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))
        self._ids = itertools.count(1)

    @property
    def use_trace_filter(self) -> bool:
        return self._use_trace_filter

    async def __aenter__(self) -> "EthereumRpcReader":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _rpc_call(self, method: str, params: list[Any]) -> Any:
        """Single JSON-RPC round trip; raise on transport, HTTP or RPC error."""
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        resp = await self._client.post(self._rpc_url, json=body)
        resp.raise_for_status()
        data = resp.json()
        err = data.get("error")
        if err:
            message = err.get("message", str(err)) if isinstance(err, dict) else str(err)
            code = err.get("code") if isinstance(err, dict) else None
            if is_transient_rpc_message(message):
                raise TransientUpstreamError(f"{method}: {message}")
            raise RpcError(f"{method}: {message}", code=code)
        return data.get("result")

    async def _call(self, method: str, params: list[Any]) -> Any:
        return await self._retry.execute(
            lambda: self._rpc_call(method, params),
            operation=method,
        )

    async def get_last_confirmed_height(self, confirmation_limit: int) -> int:
        """Chain tip minus confirmation_limit, never below 0."""
        tip = hex_to_int(await self._call("eth_blockNumber", []))
        return max(0, tip - confirmation_limit)

    async def get_block_by_height(self, height: int) -> BlockInfo | None:
        raw = await self._call("eth_getBlockByNumber", [hex(height), False])
        if raw is None:
            return None
        return parse_block(raw)

    async def get_block_by_id(self, block_id: str) -> BlockInfo | None:
        raw = await self._call("eth_getBlockByHash", [block_id, False])
        if raw is None:
            return None
        return parse_block(raw)

    async def get_block_transactions(
        self, height: int, payments_only: bool = True
    ) -> list[PaymentCandidate]:
        """
        Value transfers in the block at height.

        With use_trace_filter, inner calls are included (requires a node exposing
        the trace_ module); otherwise only top-level transactions are returned.
        """
        if self._use_trace_filter:
            block_param = hex(height)
            traces = await self._call(
                "trace_filter", [{"fromBlock": block_param, "toBlock": block_param}]
            )
            candidates = parse_traces(traces or [])
        else:
            raw = await self._call("eth_getBlockByNumber", [hex(height), True])
            candidates = parse_block_transactions(raw or {})
        if payments_only:
            candidates = filter_payments(candidates)
        logger.debug(
            "reader_block_transactions",
            height=height,
            count=len(candidates),
            trace_filter=self._use_trace_filter,
        )
        return candidates
