"""
End-to-end cycle over real SQL stores and the queue sink; only the chain is faked.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

from conftest import make_block
from payment_tracker.database import SqlCheckpointStore, SqlInvestorDirectory
from payment_tracker.eth_reader.models import PaymentCandidate
from payment_tracker.publisher import QueuePaymentSink
from payment_tracker.tracking import TrackingConfig, TrackingEngine

INVESTOR = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
STRANGER = "0x" + "33" * 20


def _reader(last_confirmed: int) -> AsyncMock:
    reader = AsyncMock()
    reader.get_last_confirmed_height.return_value = last_confirmed
    reader.get_block_by_height.side_effect = lambda h: make_block(h, empty=(h == 2))
    reader.get_block_transactions.side_effect = lambda h, payments_only: [
        PaymentCandidate(STRANGER, INVESTOR.lower(), 2 * 10**17, f"0xpay{h}", f"0xblock{h}"),
        PaymentCandidate(STRANGER, STRANGER, 10**18, f"0xnoise{h}", f"0xblock{h}"),
    ]
    return reader


async def test_cycle_publishes_investor_payments_and_persists_checkpoint(db):
    directory = SqlInvestorDirectory(db)
    directory.add_investor(INVESTOR, "alice@example.com")
    checkpoints = SqlCheckpointStore(db, scope="it")
    sink = QueuePaymentSink()
    engine = TrackingEngine(
        _reader(last_confirmed=3),
        checkpoints,
        sink,
        directory=directory,
        config=TrackingConfig(explorer_url="https://etherscan.io/"),
    )

    count = await engine.track()

    events = sink.drain()
    assert count == 2
    assert [e.transaction_id for e in events] == ["0xpay1", "0xpay3"]
    assert all(e.investor_identity == "alice@example.com" for e in events)
    assert all(e.amount == Decimal("0.2") for e in events)
    assert events[0].explorer_link == "https://etherscan.io/tx/0xpay1"
    assert await checkpoints.get_last_processed_height() == 3

    # nothing new on the next cycle
    assert await engine.track() == 0
    assert sink.drain() == []
