"""
api/usage.py

Exposes the per-provider usage counters.

Endpoints:
  - GET /usage:        {"providers": {id: {"calls", "estimated_cost"}}, "total_cost", "pricing"}
  - POST /usage/reset: Zeroes all counters.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from services.usage_tracker import UsageTracker

# Get a logger instance for this module
logger = logging.getLogger(__name__)

router = APIRouter()


def get_usage_tracker() -> UsageTracker:
    from services import usage_tracker
    return usage_tracker


@router.get("/usage")
async def get_usage(tracker: UsageTracker = Depends(get_usage_tracker)):
    return JSONResponse({
        "providers": tracker.snapshot(),
        "total_cost": tracker.total_cost(),
        "pricing": tracker.pricing,
    })


@router.post("/usage/reset")
async def reset_usage(tracker: UsageTracker = Depends(get_usage_tracker)):
    tracker.reset()
    logger.info("[reset_usage] Usage counters reset via API")
    return JSONResponse({"status": "success", "message": "Usage counters reset."})
