"""
Checkpoint store: last fully processed block height per scope.

The engine re-reads the checkpoint every cycle and never caches it, so
another process updating the row is picked up on the next cycle. There is
no optimistic concurrency check; one active tracker per scope is assumed.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol

from payment_tracker.database.connection import Database
from payment_tracker.database.models import Checkpoint
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


class CheckpointStore(Protocol):
    async def get_last_processed_height(self) -> int:
        """Return the stored height, or 0 if never set."""
        ...

    async def set_last_processed_height(self, height: int) -> None:
        ...


class SqlCheckpointStore:
    """CheckpointStore over the checkpoints table; sync SQLAlchemy run in a worker thread."""

    def __init__(self, db: Database, scope: str = "Default") -> None:
        self._db = db
        self.scope = scope or "Default"

    def _get(self) -> int:
        with self._db.session_scope() as session:
            row = session.get(Checkpoint, self.scope)
            if row is None or row.last_processed_height is None:
                return 0
            return int(row.last_processed_height)

    def _set(self, height: int) -> None:
        with self._db.session_scope() as session:
            row = session.get(Checkpoint, self.scope)
            now = int(time.time())
            if row is None:
                session.add(Checkpoint(scope=self.scope, last_processed_height=height, updated_at=now))
            else:
                row.last_processed_height = height
                row.updated_at = now

    async def get_last_processed_height(self) -> int:
        return await asyncio.to_thread(self._get)

    async def set_last_processed_height(self, height: int) -> None:
        if height < 0:
            raise ValueError("height must be non-negative")
        await asyncio.to_thread(self._set, height)
        logger.debug("checkpoint_saved", scope=self.scope, height=height)
