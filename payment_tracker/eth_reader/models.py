"""
Data models for Ethereum reader output.

BlockInfo is the block metadata needed to decide whether a block is worth a
transaction fetch; PaymentCandidate is one value transfer (top-level transaction
or inner call trace) inside a block.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class BlockInfo:
    """
    Block metadata from eth_getBlockBy{Number,Hash} with transaction hashes only.
    """

    block_id: str
    """Block hash (0x-prefixed hex)."""
    height: int
    timestamp: datetime
    """Block timestamp, timezone-aware UTC."""
    is_empty: bool
    """True iff the block contains zero transactions."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "block_id": self.block_id,
            "height": self.height,
            "timestamp": self.timestamp.isoformat(),
            "is_empty": self.is_empty,
        }


@dataclass(frozen=True)
class PaymentCandidate:
    """A value transfer inside a block, before investor matching."""

    from_address: str
    to_address: str
    """Destination as returned by the node (usually lower-case hex); may be empty."""
    amount_wei: int
    transaction_hash: str
    block_hash: str

    @property
    def is_payment(self) -> bool:
        """Payment filter: non-blank destination and strictly positive amount."""
        return bool(self.to_address and self.to_address.strip()) and self.amount_wei > 0
