from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from apps.bid_vendors.schemas import LegacyImportResult
from apps.bid_vendors.service import BidVendorService
from common.responses import success_response
from models.base import get_db
from utils.api_usage import ApiUsageTracker


router = APIRouter(prefix="/api/admin", tags=["Admin"])


def get_api_usage(request: Request) -> ApiUsageTracker:
    return request.app.state.api_usage


@router.post("/normalize-bid-vendors", response_model=LegacyImportResult)
async def normalize_bid_vendors(
    project_id: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """
    Copy legacy bid_vendors rows into the normalized tables. Safe to re-run.
    """
    return await BidVendorService.import_legacy_rows(db, project_id)


@router.get("/api-usage")
async def api_usage(tracker: ApiUsageTracker = Depends(get_api_usage)):
    return success_response(tracker.summary())


@router.delete("/api-usage")
async def reset_api_usage(tracker: ApiUsageTracker = Depends(get_api_usage)):
    tracker.reset()
    return success_response(None, "API usage counters reset")
