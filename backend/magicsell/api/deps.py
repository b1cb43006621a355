from fastapi import HTTPException, Request

from magicsell.services.operations import OperationsService
from magicsell.services.route_optimizer import RouteOptimizer


def get_service(request: Request) -> OperationsService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return service


def get_route_optimizer(request: Request) -> RouteOptimizer:
    return request.app.state.route_optimizer
