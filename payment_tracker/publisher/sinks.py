"""
Payment sinks: where accepted payment events are delivered.

HttpPaymentSink POSTs each event as JSON to a webhook; QueuePaymentSink puts
events on an asyncio.Queue for an in-process consumer. Both raise on failure
so the tracking cycle aborts before the block's checkpoint is committed.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import httpx

from payment_tracker.publisher.events import PaymentEvent
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)

DEFAULT_SINK_TIMEOUT_SEC = 15.0


class PaymentSink(Protocol):
    async def publish(self, event: PaymentEvent) -> None:
        ...


class HttpPaymentSink:
    """Deliver events to a webhook; non-2xx responses raise httpx.HTTPStatusError."""

    def __init__(
        self,
        url: str,
        *,
        timeout_sec: float = DEFAULT_SINK_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not url.strip():
            raise ValueError("url must be non-empty")
        self._url = url.strip()
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))

    async def publish(self, event: PaymentEvent) -> None:
        resp = await self._client.post(self._url, json=event.to_dict())
        resp.raise_for_status()
        logger.info(
            "payment_published",
            transaction_id=event.transaction_id,
            pay_in_address=event.destination_address,
            amount=str(event.amount),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


class QueuePaymentSink:
    """In-process sink; the consumer reads PaymentEvent objects from .queue."""

    def __init__(self, queue: "asyncio.Queue[PaymentEvent] | None" = None) -> None:
        self.queue: asyncio.Queue[PaymentEvent] = queue if queue is not None else asyncio.Queue()

    async def publish(self, event: PaymentEvent) -> None:
        await self.queue.put(event)
        logger.info(
            "payment_queued",
            transaction_id=event.transaction_id,
            pay_in_address=event.destination_address,
            amount=str(event.amount),
            queue_size=self.queue.qsize(),
        )

    def drain(self) -> list[PaymentEvent]:
        """Remove and return everything currently queued."""
        items: list[PaymentEvent] = []
        while True:
            try:
                items.append(self.queue.get_nowait())
            except asyncio.QueueEmpty:
                return items

    async def aclose(self) -> None:
        return None
