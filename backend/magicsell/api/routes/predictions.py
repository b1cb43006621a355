"""
Revenue prediction API endpoints.
"""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from magicsell.api.deps import get_service
from magicsell.schemas.forecast import AdvancedPredictionRequest
from magicsell.services.operations import OperationsService

router = APIRouter()


@router.get("")
async def list_predictions(service: OperationsService = Depends(get_service)) -> List[Dict[str, Any]]:
    """The stored next-period prediction from the last recalculation."""
    return service.derived["predictions"]


@router.post("/calculate")
async def calculate_predictions(
    request: AdvancedPredictionRequest,
    service: OperationsService = Depends(get_service),
) -> Dict[str, Any]:
    """
    Project a supplied series forward with a least-squares line.

    Needs at least two historical points; fewer gives an empty, stable result.
    """
    series = [point.value for point in request.historical_data]
    projection = service.forecaster.linear_projection(
        series,
        timeframe=request.timeframe,
        start=service.clock().date(),
    )
    return projection.to_dict()
