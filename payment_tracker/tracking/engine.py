"""
Tracking engine: confirmed block window -> payment events -> checkpoint.

Each track() cycle re-reads the chain's last confirmed height and the stored
checkpoint, walks the pending heights in increasing order, publishes a payment
event for every transfer to a known investor address, and commits the
checkpoint after each block. A crash loses at most the in-flight block's
publications; the next cycle resumes from the first uncommitted height.

The same per-height path serves admin re-scans (process_block_by_* and
process_range(save_progress=False)), which never move the checkpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from eth_utils import from_wei, to_checksum_address

from payment_tracker.core.exceptions import InvalidRangeError
from payment_tracker.database.checkpoints import CheckpointStore
from payment_tracker.database.investors import InvestorDirectory
from payment_tracker.eth_reader.models import BlockInfo, PaymentCandidate
from payment_tracker.eth_reader.reader import BlockchainReader
from payment_tracker.publisher.events import CURRENCY_ETH, PaymentEvent
from payment_tracker.publisher.sinks import PaymentSink
from payment_tracker.tracker_logging import get_logger, tracking_context


@dataclass(frozen=True)
class TrackingConfig:
    """Engine policy; built from Settings in production, directly in tests."""

    confirmation_limit: int = 0
    start_height: int = 0
    network: str = "mainnet"
    explorer_url: str = ""
    checkpoint_per_block: bool = True
    """False: commit once after the whole range instead of after every block."""
    advance_on_missing_block: bool = False
    """False: a missing block stops the cycle without committing it."""

    @classmethod
    def from_settings(cls, settings: Any) -> "TrackingConfig":
        return cls(
            confirmation_limit=settings.confirmation_limit,
            start_height=settings.start_height,
            network=settings.eth_network,
            explorer_url=settings.explorer_url,
            checkpoint_per_block=settings.checkpoint_per_block,
            advance_on_missing_block=settings.advance_on_missing_block,
        )


def format_range(from_height: int, to_height: int) -> str:
    """'[from - to, count]' for multi-block ranges, '[h]' for a single block."""
    count = to_height - from_height + 1
    if count > 1:
        return f"[{from_height} - {to_height}, {count}]"
    return f"[{to_height}]"


class TrackingEngine:
    """
    Scan-and-publish loop with resumable, monotone progress.

    directory: when given, the engine runs identity-aware: candidates whose
    destination does not resolve to an investor are dropped.
    """

    def __init__(
        self,
        reader: BlockchainReader,
        checkpoints: CheckpointStore,
        sink: PaymentSink,
        *,
        directory: InvestorDirectory | None = None,
        config: TrackingConfig | None = None,
    ) -> None:
        self._reader = reader
        self._checkpoints = checkpoints
        self._sink = sink
        self._directory = directory
        self._config = config or TrackingConfig()
        self._log = get_logger(__name__).bind(network=self._config.network)

    @property
    def config(self) -> TrackingConfig:
        return self._config

    async def track(self) -> int:
        """
        Process every block in (last processed, last confirmed].
        Returns the number of payment events published.
        """
        cfg = self._config
        last_confirmed = await self._reader.get_last_confirmed_height(cfg.confirmation_limit)
        last_processed = await self._checkpoints.get_last_processed_height()
        if last_processed < cfg.start_height:
            last_processed = cfg.start_height

        if last_processed >= last_confirmed:
            # all processed, or start height is beyond the current confirmed height
            self._log.debug(
                "tracking_no_new_data",
                last_processed=last_processed,
                last_confirmed=last_confirmed,
            )
            return 0

        from_height = last_processed + 1
        to_height = last_confirmed
        # reader, store and sink logs of this cycle carry the range too
        with tracking_context(range=format_range(from_height, to_height)):
            self._log.info("tracking_started")
            count = await self.process_range(from_height, to_height, save_progress=True)
            self._log.info("tracking_completed", investments=count)
        return count

    async def process_range(
        self,
        from_height: int,
        to_height: int,
        save_progress: bool = False,
    ) -> int:
        """
        Process the closed range [from_height, to_height] in increasing order.

        save_progress commits the checkpoint (per block or once at the end,
        per config). Admin re-scans pass save_progress=False.
        """
        if from_height > to_height:
            raise InvalidRangeError(from_height, to_height)

        cfg = self._config
        total = 0
        last_done: int | None = None
        for height in range(from_height, to_height + 1):
            block = await self._reader.get_block_by_height(height)
            if block is None:
                self._log.warning("block_not_found", height=height)
                if save_progress and not cfg.advance_on_missing_block:
                    self._log.warning("tracking_stalled_on_missing_block", height=height)
                    break
            else:
                total += await self._process_block(block)
            last_done = height
            if save_progress and cfg.checkpoint_per_block:
                await self._checkpoints.set_last_processed_height(height)

        if save_progress and not cfg.checkpoint_per_block and last_done is not None:
            await self._checkpoints.set_last_processed_height(last_done)
        return total

    async def process_block_by_height(self, height: int) -> int:
        """Re-process one block by height; does not touch the checkpoint."""
        block = await self._reader.get_block_by_height(height)
        if block is None:
            self._log.warning("block_not_found", height=height)
            return 0
        return await self._process_block(block)

    async def process_block_by_id(self, block_id: str) -> int:
        """Re-process one block by hash; does not touch the checkpoint."""
        block = await self._reader.get_block_by_id(block_id)
        if block is None:
            self._log.warning("block_not_found", block_id=block_id)
            return 0
        return await self._process_block(block)

    async def _process_block(self, block: BlockInfo) -> int:
        if block.is_empty:
            self._log.info("block_empty_skipped", height=block.height)
            return 0

        # a non-empty block can still hold zero payment transactions
        candidates = await self._reader.get_block_transactions(block.height, payments_only=True)
        count = 0
        for candidate in candidates:
            event = await self._build_event(block, candidate)
            if event is None:
                continue
            await self._sink.publish(event)
            count += 1

        self._log.info(
            "block_processed",
            height=block.height,
            candidates=len(candidates),
            investments=count,
        )
        return count

    async def _build_event(
        self,
        block: BlockInfo,
        candidate: PaymentCandidate,
    ) -> PaymentEvent | None:
        destination = to_checksum_address(candidate.to_address)
        investor: str | None = None
        if self._directory is not None:
            investor = await self._directory.resolve_investor(destination)
            if not investor or not investor.strip():
                self._log.debug(
                    "payment_without_investor",
                    pay_in_address=destination,
                    transaction_id=candidate.transaction_hash,
                )
                return None

        link = None
        if self._config.explorer_url:
            link = f"{self._config.explorer_url}tx/{candidate.transaction_hash}"

        return PaymentEvent(
            destination_address=destination,
            amount=Decimal(from_wei(candidate.amount_wei, "ether")),
            transaction_id=candidate.transaction_hash,
            block_id=candidate.block_hash or block.block_id,
            block_timestamp=block.timestamp,
            currency=CURRENCY_ETH,
            investor_identity=investor,
            explorer_link=link,
        )
