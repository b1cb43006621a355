"""
Sales report API endpoints.
"""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query

from magicsell.api.deps import get_service
from magicsell.schemas.report import ExportReportRequest
from magicsell.services.operations import OperationsService
from magicsell.services.reports import export_report, sales_report

router = APIRouter()


@router.get("")
async def list_reports(service: OperationsService = Depends(get_service)) -> List[Dict[str, Any]]:
    """Stored summary of the latest week."""
    return service.derived["reports"]


@router.get("/sales")
async def get_sales_report(
    time_range: str = Query("month", alias="timeRange", pattern="^(week|month|quarter|year)$"),
    service: OperationsService = Depends(get_service),
) -> Dict[str, Any]:
    return sales_report(service.snapshot().orders, time_range, now=service.clock())


@router.post("/export")
async def export_sales_report(
    request: ExportReportRequest,
    service: OperationsService = Depends(get_service),
) -> Dict[str, Any]:
    return export_report(request.report_data, request.format, now=service.clock())
