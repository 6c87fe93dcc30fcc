"""
Service wiring: build the reader, stores, sink, engine and runner from Settings.

TrackerServices owns every long-lived resource (HTTP clients, DB engine) and
releases them in aclose(); the FastAPI lifespan calls build_services() on
startup and aclose() on shutdown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from payment_tracker.agent_worker.runner import PeriodicTracker
from payment_tracker.config import Settings
from payment_tracker.config.env import mask_url
from payment_tracker.core.exceptions import ConfigError
from payment_tracker.core.retry import RetryExecutor
from payment_tracker.database import Database, SqlCheckpointStore, SqlInvestorDirectory
from payment_tracker.database.checkpoints import CheckpointStore
from payment_tracker.eth_reader import EthereumRpcReader
from payment_tracker.publisher import HttpPaymentSink, PaymentSink
from payment_tracker.tracker_logging import get_logger
from payment_tracker.tracking import TrackingConfig, TrackingEngine

logger = get_logger(__name__)


@dataclass
class TrackerServices:
    settings: Settings
    engine: TrackingEngine
    checkpoints: CheckpointStore
    runner: PeriodicTracker | None = None
    resources: list[Any] = field(default_factory=list)
    """Objects with aclose() (async) or dispose() (sync), released in reverse order."""

    async def aclose(self) -> None:
        for resource in reversed(self.resources):
            try:
                if hasattr(resource, "aclose"):
                    await resource.aclose()
                elif hasattr(resource, "dispose"):
                    resource.dispose()
            except Exception as e:
                logger.warning("service_close_failed", resource=type(resource).__name__, error=str(e))
        self.resources.clear()


def build_services(settings: Settings, *, sink: PaymentSink | None = None) -> TrackerServices:
    """
    Create all collaborators for one tracker instance.

    sink: delivery target for embedding (e.g. a QueuePaymentSink read by the
    host application). When None, PAYMENT_SINK_URL must name the webhook.

    Raises:
        ConfigError: no sink given and PAYMENT_SINK_URL is unset.
    """
    if sink is None:
        if not settings.payment_sink_url:
            raise ConfigError("PAYMENT_SINK_URL must be set: payment events need a downstream consumer")
        sink = HttpPaymentSink(settings.payment_sink_url)

    db = Database(settings.database_url)
    db.init_schema()

    retry = RetryExecutor(
        max_attempts=settings.retry_max_attempts,
        delay_sec=settings.retry_delay_sec,
    )
    reader = EthereumRpcReader(
        settings.eth_rpc_url,
        use_trace_filter=settings.use_trace_filter,
        retry=retry,
        timeout_sec=settings.rpc_timeout_sec,
    )
    checkpoints = SqlCheckpointStore(db, scope=settings.checkpoint_scope)
    directory = SqlInvestorDirectory(db) if settings.require_investor else None

    engine = TrackingEngine(
        reader,
        checkpoints,
        sink,
        directory=directory,
        config=TrackingConfig.from_settings(settings),
    )
    runner = PeriodicTracker(engine, settings.tracking_interval_sec)

    logger.info(
        "services_built",
        network=settings.eth_network,
        rpc_url=mask_url(settings.eth_rpc_url),
        scope=settings.checkpoint_scope,
        trace_filter=settings.use_trace_filter,
        identity_aware=directory is not None,
        sink=type(sink).__name__,
        confirmation_limit=settings.confirmation_limit,
        start_height=settings.start_height,
    )
    return TrackerServices(
        settings=settings,
        engine=engine,
        checkpoints=checkpoints,
        runner=runner,
        resources=[db, reader, sink],
    )
