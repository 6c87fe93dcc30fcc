"""
SQLAlchemy models for tracker state.

Checkpoints hold the last fully processed block height per scope (deployment
instance); investor addresses map a checksum pay-in address to an investor e-mail.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Column, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Checkpoint(Base):
    """One row per scope; never deleted by the tracker."""

    __tablename__ = "checkpoints"

    scope = Column(String(128), primary_key=True)
    last_processed_height = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(Integer, nullable=True)  # Unix timestamp

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "last_processed_height": self.last_processed_height,
            "updated_at": self.updated_at,
        }


class InvestorAddress(Base):
    """Investor pay-in address (EIP-55 checksum form) and owning identity."""

    __tablename__ = "investor_addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(42), unique=True, nullable=False, index=True)
    email = Column(String(256), nullable=False)
    created_at = Column(Integer, nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "email": self.email,
            "created_at": self.created_at,
        }
