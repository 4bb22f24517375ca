"""API endpoints for running the payment sweep."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..auth import verify_api_key, limiter
from .errors import InvalidConfiguration, StoreUnavailable
from .service import ReconciliationSweep, grace_period_from_minutes
from .store import SQLAlchemyPaymentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sweep", tags=["sweep"])


class SweepRequestBody(BaseModel):
    """Request body for triggering a sweep."""
    grace_minutes: Optional[float] = Field(
        default=None,
        description="Grace period in minutes; defaults to SWEEP_GRACE_PERIOD_MINUTES or 5",
    )


@router.post("/runs")
@limiter.limit("30/minute")
async def create_sweep_run(
    request: Request,
    body: SweepRequestBody,
    include_details: bool = Query(default=True, description="Include the pending listing"),
    db: AsyncSession = Depends(get_db),
    api_key: str = Depends(verify_api_key),
):
    """
    Run one sweep and return its report.

    Pending payments older than the grace period are expired; the response
    lists every payment that was pending when the sweep started.
    """
    sweep = ReconciliationSweep(SQLAlchemyPaymentStore(db))
    try:
        grace_period = None
        if body.grace_minutes is not None:
            grace_period = grace_period_from_minutes(body.grace_minutes)
        report = await sweep.run_sweep(grace_period)
    except InvalidConfiguration as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailable as e:
        logger.error(f"Sweep request failed: {e}")
        raise HTTPException(status_code=503, detail="Payment store unavailable")

    return report.to_full_dict() if include_details else report.to_summary_dict()


@router.get("/health")
async def sweep_health():
    """Health check endpoint for the sweep service."""
    return {"status": "healthy", "service": "sweep"}
