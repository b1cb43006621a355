"""
Delivery route API endpoints.

- Route ordering from the depot (Mapbox geocoding)
- Printable route sheet (CSV/Excel)
"""

from typing import Any, Dict
from io import BytesIO
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from magicsell.api.deps import get_route_optimizer, get_service
from magicsell.schemas.route import OptimizeRouteRequest, PrintRouteRequest
from magicsell.services.exports import route_sheet
from magicsell.services.operations import OperationsService
from magicsell.services.route_optimizer import RouteOptimizer

router = APIRouter()


@router.post("/optimize-route")
async def optimize_route(
    request: OptimizeRouteRequest,
    service: OperationsService = Depends(get_service),
    optimizer: RouteOptimizer = Depends(get_route_optimizer),
) -> Dict[str, Any]:
    """
    Order active deliveries nearest-to-depot first.

    Uses the orders in the request body, or the whole ledger when none are sent.
    """
    orders = request.orders or list(service.snapshot().orders)
    return await optimizer.optimize(orders, request.start_postcode)


@router.post("/print-route")
async def print_route(
    request: PrintRouteRequest,
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    service: OperationsService = Depends(get_service),
):
    """Route sheet for the given orders, in the order given."""
    content, media_type = route_sheet(request.orders, format)
    filename = f"route_{service.clock().date().isoformat()}.{format}"
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
