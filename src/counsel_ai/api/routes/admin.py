"""On-demand triggers for the scheduled similarity jobs."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from counsel_ai.api.deps import get_trigger
from counsel_ai.scheduling.jobs import CLEANUP_JOB, SWEEP_JOB
from counsel_ai.scheduling.scheduler import PeriodicTrigger

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin/similarity", tags=["admin"])


@router.post("/sweep")
async def trigger_sweep(trigger: PeriodicTrigger = Depends(get_trigger)) -> dict:
    """Run the historical similarity sweep now and return its summary."""
    try:
        summary = await trigger.trigger(SWEEP_JOB)
    except Exception as e:
        logger.error("manual_sweep_failed", error=str(e))
        raise HTTPException(status_code=503, detail="Similarity sweep failed") from e
    return summary.as_dict()


@router.post("/cleanup")
async def trigger_cleanup(trigger: PeriodicTrigger = Depends(get_trigger)) -> dict:
    """Delete expired similarity rows now."""
    deleted = await trigger.trigger(CLEANUP_JOB)
    return {"deleted": deleted}
