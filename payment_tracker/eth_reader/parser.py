"""
Ethereum JSON-RPC payload parser: raw results to BlockInfo / PaymentCandidate.

Purely structural; no investor matching. Handles both extraction shapes:
trace_filter results (action.from / action.to / action.value, including inner
calls) and full-transaction blocks from eth_getBlockByNumber(h, true).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from payment_tracker.eth_reader.models import BlockInfo, PaymentCandidate
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


def hex_to_int(value: Any) -> int:
    """Decode a JSON-RPC quantity ('0x1a', int, or None) to int; None/'' -> 0."""
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    s = str(value).strip()
    if s.lower().startswith("0x"):
        return int(s, 16) if len(s) > 2 else 0
    return int(s)


def parse_block(raw: dict[str, Any]) -> BlockInfo:
    """Build BlockInfo from an eth_getBlockBy* result (hashes or full transactions)."""
    txs = raw.get("transactions") or []
    return BlockInfo(
        block_id=raw["hash"],
        height=hex_to_int(raw["number"]),
        timestamp=datetime.fromtimestamp(hex_to_int(raw.get("timestamp")), tz=timezone.utc),
        is_empty=len(txs) == 0,
    )


def parse_trace(trace: dict[str, Any]) -> PaymentCandidate | None:
    """
    Build a candidate from a single trace_filter item.
    Returns None for reverted traces (value never moved) and malformed items.
    """
    if trace.get("error"):
        return None
    action = trace.get("action")
    if not isinstance(action, dict):
        return None
    try:
        return PaymentCandidate(
            from_address=action.get("from") or "",
            to_address=action.get("to") or "",
            amount_wei=hex_to_int(action.get("value")),
            transaction_hash=trace.get("transactionHash") or "",
            block_hash=trace.get("blockHash") or "",
        )
    except (TypeError, ValueError) as e:
        logger.debug("parser_skip_invalid_trace", error=str(e))
        return None


def parse_traces(traces: list[dict[str, Any]]) -> list[PaymentCandidate]:
    out: list[PaymentCandidate] = []
    for item in traces or []:
        if not isinstance(item, dict):
            continue
        candidate = parse_trace(item)
        if candidate is not None:
            out.append(candidate)
    return out


def parse_block_transactions(raw_block: dict[str, Any]) -> list[PaymentCandidate]:
    """Top-level transactions of a full block; contract-creation txs have no 'to'."""
    out: list[PaymentCandidate] = []
    block_hash = raw_block.get("hash") or ""
    for tx in raw_block.get("transactions") or []:
        if not isinstance(tx, dict):
            # hashes-only block; caller asked for the wrong shape
            continue
        out.append(
            PaymentCandidate(
                from_address=tx.get("from") or "",
                to_address=tx.get("to") or "",
                amount_wei=hex_to_int(tx.get("value")),
                transaction_hash=tx.get("hash") or "",
                block_hash=tx.get("blockHash") or block_hash,
            )
        )
    return out


def filter_payments(candidates: list[PaymentCandidate]) -> list[PaymentCandidate]:
    """Keep only candidates passing the payment filter (see PaymentCandidate.is_payment)."""
    return [c for c in candidates if c.is_payment]
