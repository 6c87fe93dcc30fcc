"""
Pytest fixtures for payment tracker tests.

The blockchain reader, sink and investor directory are AsyncMock fakes; the
checkpoint store is an in-memory double recording every write. SQL-backed
stores use a temporary SQLite database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from payment_tracker.database import Database
from payment_tracker.eth_reader.models import BlockInfo, PaymentCandidate
from payment_tracker.tracking import TrackingConfig, TrackingEngine

TxFactory = Callable[[int, bool], list[PaymentCandidate]]


def address_for(height: int) -> str:
    """Deterministic lower-case address per height (digits only, valid hex)."""
    return f"0x{height:040x}"


def default_tx_factory(height: int, payments_only: bool = True) -> list[PaymentCandidate]:
    """One payment transaction per block by default."""
    return [
        PaymentCandidate(
            from_address=address_for(0),
            to_address=address_for(height),
            amount_wei=height,
            transaction_hash=f"0xtx{height}",
            block_hash=f"0xblock{height}",
        )
    ]


def make_block(height: int, *, empty: bool = False, block_id: str | None = None) -> BlockInfo:
    return BlockInfo(
        block_id=block_id or f"0xblock{height}",
        height=height,
        timestamp=datetime.fromtimestamp(height, tz=timezone.utc),
        is_empty=empty,
    )


class MemoryCheckpointStore:
    """CheckpointStore double; `writes` records every committed height in order."""

    def __init__(self, height: int = 0) -> None:
        self.height = height
        self.writes: list[int] = []

    async def get_last_processed_height(self) -> int:
        return self.height

    async def set_last_processed_height(self, height: int) -> None:
        self.height = height
        self.writes.append(height)


@dataclass
class Tracker:
    engine: TrackingEngine
    reader: AsyncMock
    sink: AsyncMock
    store: MemoryCheckpointStore
    chain: dict[str, Any] = field(default_factory=dict)

    @property
    def published(self) -> list[Any]:
        return [c.args[0] for c in self.sink.publish.await_args_list]


def build_tracker(
    last_processed: int = 0,
    last_confirmed: int = 5,
    *,
    tx_factory: TxFactory | None = None,
    directory: Any = None,
    **config: Any,
) -> Tracker:
    """
    Engine over fakes: reader reports last_confirmed (mutable via tracker.chain),
    every height is a non-empty block, and tx_factory supplies transactions.
    """
    chain: dict[str, Any] = {"last_confirmed": last_confirmed}
    reader = AsyncMock()
    reader.get_last_confirmed_height.side_effect = lambda limit: chain["last_confirmed"]
    reader.get_block_by_height.side_effect = lambda h: make_block(h)
    reader.get_block_by_id.side_effect = lambda block_id: make_block(
        last_processed + 1, block_id=block_id
    )
    reader.get_block_transactions.side_effect = tx_factory or default_tx_factory

    sink = AsyncMock()
    store = MemoryCheckpointStore(last_processed)
    engine = TrackingEngine(
        reader,
        store,
        sink,
        directory=directory,
        config=TrackingConfig(**config),
    )
    return Tracker(engine=engine, reader=reader, sink=sink, store=store, chain=chain)


@pytest.fixture
def tracker_factory():
    return build_tracker


@pytest.fixture
def db(tmp_path):
    """Temporary SQLite database with tracker tables created."""
    database = Database(f"sqlite:///{tmp_path / 'tracker.db'}")
    database.init_schema()
    yield database
    database.dispose()
