"""
Main entrypoint for the payment tracker.

Commands:
  serve         FastAPI admin API + periodic tracker in one event loop (default)
  worker        periodic tracker only, no HTTP surface
  track-once    run a single tracking cycle and exit
  add-investor  register an investor pay-in address

Env: ETH_RPC_URL, ETH_NETWORK, DATABASE_URL, CONFIRMATION_LIMIT, START_HEIGHT,
TRACKING_INTERVAL_SEC, PAYMENT_SINK_URL, API_HOST, API_PORT, etc. (see payment_tracker.config).

API-only (no runner): uvicorn payment_tracker.api_server.app:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys

# Configure structured JSON logging before other imports that may log
from payment_tracker.core.exceptions import ConfigError
from payment_tracker.tracker_logging import get_logger

logger = get_logger("main")


async def _run_worker(once: bool) -> int:
    from payment_tracker.api_server.services import build_services
    from payment_tracker.config import get_settings

    services = build_services(get_settings())
    try:
        if once:
            count = await services.engine.track()
            logger.info("main_track_once_done", investments=count)
            return 0
        runner = services.runner
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except (NotImplementedError, RuntimeError):
                # Signal handlers unsupported on this platform / loop
                pass
        runner.start()
        await stop.wait()
        logger.info("main_shutdown_signal")
        await runner.stop()
        return 0
    finally:
        await services.aclose()


def _add_investor(address: str, email: str) -> int:
    from payment_tracker.config import get_settings
    from payment_tracker.database import Database, SqlInvestorDirectory

    settings = get_settings()
    db = Database(settings.database_url)
    try:
        db.init_schema()
        added = SqlInvestorDirectory(db).add_investor(address, email)
    except ValueError as e:
        logger.error("main_add_investor_invalid", error=str(e))
        return 2
    finally:
        db.dispose()
    logger.info("main_add_investor", address=address, added=added)
    return 0


def _serve() -> int:
    import uvicorn

    from payment_tracker.api_server.app import app
    from payment_tracker.config import get_settings

    settings = get_settings()
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ethereum investor payment tracker")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="admin API + periodic tracker")
    sub.add_parser("worker", help="periodic tracker without API")
    sub.add_parser("track-once", help="run one tracking cycle")
    add = sub.add_parser("add-investor", help="register an investor pay-in address")
    add.add_argument("address")
    add.add_argument("email")
    args = parser.parse_args(argv)

    command = args.command or "serve"
    try:
        if command == "serve":
            return _serve()
        if command == "worker":
            return asyncio.run(_run_worker(once=False))
        if command == "track-once":
            return asyncio.run(_run_worker(once=True))
        return _add_investor(args.address, args.email)
    except ConfigError as e:
        logger.error("main_config_invalid", command=command, error=str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
