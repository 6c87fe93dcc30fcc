"""
FastAPI server — admin surface over the tracking engine.

Exposes manual re-scan endpoints under /api and a liveness probe. The lifespan
builds the tracker services from Settings, starts the periodic runner in the
same event loop, and releases everything on shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from payment_tracker import __version__
from payment_tracker.api_server.routes import router as scan_router
from payment_tracker.api_server.services import TrackerServices, build_services
from payment_tracker.config import get_settings
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


def create_app(
    services: TrackerServices | None = None,
    *,
    start_runner: bool = True,
) -> FastAPI:
    """
    Build the ASGI app.

    services: pre-built services (tests); when None the lifespan builds them
    from get_settings() and owns their lifecycle.
    start_runner: start the periodic tracking runner during lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.services is None
        if owned:
            app.state.services = build_services(get_settings())
        svc: TrackerServices = app.state.services
        if start_runner and svc.runner is not None:
            svc.runner.start()
            logger.info("api_periodic_runner_started", interval_sec=svc.settings.tracking_interval_sec)

        yield

        if start_runner and svc.runner is not None:
            await svc.runner.stop()
            logger.info("api_periodic_runner_stopped")
        if owned:
            await svc.aclose()
            app.state.services = None

    app = FastAPI(
        title="Payment Tracker",
        description="Admin API for the Ethereum investor payment tracker.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services
    app.include_router(scan_router, prefix="/api", tags=["Scan"])

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    return app
