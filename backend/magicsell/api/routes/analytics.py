"""
Sales analytics API endpoints.

Read access to the derived daily and weekly sales, a whole-ledger summary,
and on-demand recalculation.
"""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException

from magicsell.api.deps import get_service
from magicsell.services.operations import BucketNotFoundError, OperationsService

router = APIRouter()


@router.get("/daily-sales")
async def list_daily_sales(service: OperationsService = Depends(get_service)) -> List[Dict[str, Any]]:
    return service.derived["dailySales"]


@router.get("/daily-sales/{day}")
async def get_daily_sales(day: str, service: OperationsService = Depends(get_service)):
    try:
        return service.find_bucket("dailySales", "date", day)
    except BucketNotFoundError:
        raise HTTPException(status_code=404, detail="Daily sale not found")


@router.get("/weekly-sales")
async def list_weekly_sales(service: OperationsService = Depends(get_service)) -> List[Dict[str, Any]]:
    return service.derived["weeklySales"]


@router.get("/weekly-sales/{week}")
async def get_weekly_sales(week: str, service: OperationsService = Depends(get_service)):
    try:
        return service.find_bucket("weeklySales", "week", week)
    except BucketNotFoundError:
        raise HTTPException(status_code=404, detail="Weekly sale not found")


@router.get("/analytics")
async def get_analytics(service: OperationsService = Depends(get_service)) -> Dict[str, Any]:
    """Ledger totals and top shops, plus a fresh (unsaved) recalculation."""
    return service.analytics()


@router.post("/recalculate-analytics")
async def recalculate_analytics(service: OperationsService = Depends(get_service)) -> Dict[str, Any]:
    """Rebuild and save every derived collection from the current ledger."""
    counts = await service.force_recalculate()
    return {"message": "Analytics recalculated successfully", "data": counts}


@router.post("/calculate-daily-sales/{day}")
async def calculate_daily_sales(day: str, service: OperationsService = Depends(get_service)):
    """Recompute one day's bucket, with revenue per hour."""
    try:
        return await service.recompute_day(day)
    except ValueError:
        raise HTTPException(status_code=400, detail="Date must be YYYY-MM-DD")
    except BucketNotFoundError:
        raise HTTPException(status_code=404, detail="No orders found for this date")


@router.post("/calculate-weekly-sales/{week}")
async def calculate_weekly_sales(week: str, service: OperationsService = Depends(get_service)):
    """Recompute one ISO week's bucket, with revenue per weekday."""
    try:
        return await service.recompute_week(week)
    except ValueError:
        raise HTTPException(status_code=400, detail="Week must be YYYY-Www")
    except BucketNotFoundError:
        raise HTTPException(status_code=404, detail="No orders found for this week")
