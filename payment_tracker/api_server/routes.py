"""
Admin routes: manual re-scan of a block or a block range, checkpoint read-out.

Re-scans never move the checkpoint; they may publish duplicates of events
the periodic cycle already sent, which consumers deduplicate by transaction id.
"""

from __future__ import annotations

from typing import Awaitable

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from payment_tracker.api_server.services import TrackerServices
from payment_tracker.core.exceptions import InvalidRangeError, UpstreamUnavailableError
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class ScanBlockRequest(BaseModel):
    """POST /scan/block body: exactly one of height or id."""

    height: int | None = Field(None, ge=0, description="Block height")
    id: str | None = Field(None, min_length=1, max_length=128, description="Block hash (0x-prefixed)")


class ScanRangeRequest(BaseModel):
    """POST /scan/range body: closed range of heights (snake_case or fromHeight/toHeight)."""

    model_config = ConfigDict(populate_by_name=True)

    from_height: int = Field(..., ge=0, alias="fromHeight", description="First height (inclusive)")
    to_height: int = Field(..., ge=0, alias="toHeight", description="Last height (inclusive)")


class ScanResponse(BaseModel):
    count: int = Field(..., description="Number of payment events published")


class CheckpointResponse(BaseModel):
    scope: str = Field(..., description="Checkpoint partition (instance id or Default)")
    last_processed_height: int = Field(..., description="Last fully processed block height")


def get_services(request: Request) -> TrackerServices:
    """Dependency: services built by the app lifespan (or injected in tests)."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Tracker is not initialized")
    return services


async def _run_scan(action: Awaitable[int], **context: object) -> ScanResponse:
    try:
        count = await action
    except InvalidRangeError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except UpstreamUnavailableError as e:
        logger.error("scan_upstream_unavailable", error=str(e), **context)
        raise HTTPException(status_code=503, detail="Blockchain node unavailable") from e
    except Exception as e:
        logger.exception("scan_failed", error=str(e), **context)
        raise HTTPException(status_code=500, detail="Scan failed") from e
    logger.info("scan_completed", count=count, **context)
    return ScanResponse(count=count)


@router.post("/scan/block", response_model=ScanResponse)
async def scan_block(
    body: ScanBlockRequest,
    services: TrackerServices = Depends(get_services),
) -> ScanResponse:
    """Re-process one block by height or hash. Does not touch the checkpoint."""
    block_id = (body.id or "").strip()
    if (body.height is None) == (not block_id):
        raise HTTPException(status_code=400, detail="Provide exactly one of 'height' or 'id'")
    if body.height is not None:
        return await _run_scan(services.engine.process_block_by_height(body.height), height=body.height)
    return await _run_scan(services.engine.process_block_by_id(block_id), block_id=block_id)


@router.post("/scan/block/{block}", response_model=ScanResponse)
async def scan_block_path(
    block: str,
    services: TrackerServices = Depends(get_services),
) -> ScanResponse:
    """Re-process one block; a numeric path segment is a height, anything else a hash."""
    block = block.strip()
    if block.isascii() and block.isdigit():
        height = int(block)
        return await _run_scan(services.engine.process_block_by_height(height), height=height)
    return await _run_scan(services.engine.process_block_by_id(block), block_id=block)


@router.post("/scan/range", response_model=ScanResponse)
async def scan_range(
    body: ScanRangeRequest,
    services: TrackerServices = Depends(get_services),
) -> ScanResponse:
    """Re-process [from_height, to_height]. Never saves progress; inverted ranges are 400."""
    return await _run_scan(
        services.engine.process_range(body.from_height, body.to_height, save_progress=False),
        from_height=body.from_height,
        to_height=body.to_height,
    )


@router.get("/checkpoint", response_model=CheckpointResponse)
async def get_checkpoint(services: TrackerServices = Depends(get_services)) -> CheckpointResponse:
    height = await services.checkpoints.get_last_processed_height()
    return CheckpointResponse(scope=services.settings.checkpoint_scope, last_processed_height=height)
