"""
Investor directory: pay-in address -> investor e-mail.

Addresses are stored and looked up in EIP-55 checksum form, so callers may
pass lower-case node output or checksum strings interchangeably.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Protocol

from eth_utils import is_address, to_checksum_address
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from payment_tracker.database.connection import Database
from payment_tracker.database.models import InvestorAddress
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


class InvestorDirectory(Protocol):
    async def resolve_investor(self, address: str) -> str | None:
        """Return the owning investor identity, or None if the address is unknown."""
        ...


def _normalize(address: str) -> str:
    address = (address or "").strip()
    if not is_address(address):
        raise ValueError(f"Invalid Ethereum address: {address!r}")
    return to_checksum_address(address)


class SqlInvestorDirectory:
    """InvestorDirectory over the investor_addresses table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _resolve(self, address: str) -> str | None:
        with self._db.session_scope() as session:
            row = session.execute(
                select(InvestorAddress).where(InvestorAddress.address == address)
            ).scalar_one_or_none()
            return row.email if row is not None else None

    async def resolve_investor(self, address: str) -> str | None:
        try:
            checksum = _normalize(address)
        except ValueError:
            return None
        return await asyncio.to_thread(self._resolve, checksum)

    def add_investor(self, address: str, email: str) -> bool:
        """
        Register a pay-in address. Returns True if added, False if already present.
        Raises ValueError for an invalid address or empty email.
        """
        checksum = _normalize(address)
        email = (email or "").strip()
        if not email:
            raise ValueError("email must be non-empty")
        try:
            with self._db.session_scope() as session:
                session.add(
                    InvestorAddress(address=checksum, email=email, created_at=int(time.time()))
                )
        except IntegrityError:
            return False
        logger.info("investor_address_added", address=checksum)
        return True

    def list_investors(self) -> list[dict[str, Any]]:
        with self._db.session_scope() as session:
            rows = session.execute(select(InvestorAddress).order_by(InvestorAddress.id)).scalars()
            return [r.to_dict() for r in rows]
