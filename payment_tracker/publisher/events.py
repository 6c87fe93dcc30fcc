"""
Payment event: the normalized record forwarded downstream.

Ephemeral: built, published, and discarded. Consumers deduplicate on
unique_id (the transaction hash), since delivery is at-least-once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

CURRENCY_ETH = "ETH"


@dataclass(frozen=True)
class PaymentEvent:
    destination_address: str
    """EIP-55 checksum pay-in address."""
    amount: Decimal
    """Amount in ether (exact)."""
    transaction_id: str
    block_id: str
    block_timestamp: datetime
    currency: str = CURRENCY_ETH
    investor_identity: str | None = None
    explorer_link: str | None = None

    @property
    def unique_id(self) -> str:
        return self.transaction_id

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict; amount as string so no precision is lost."""
        return {
            "unique_id": self.unique_id,
            "transaction_id": self.transaction_id,
            "block_id": self.block_id,
            "created_utc": self.block_timestamp.isoformat(),
            "pay_in_address": self.destination_address,
            "currency": self.currency,
            "amount": str(self.amount),
            "email": self.investor_identity,
            "link": self.explorer_link,
        }
