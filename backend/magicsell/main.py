from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from magicsell.config import Settings, get_settings
from magicsell.core.log_config import configure_logging
from magicsell.api.routes import analytics, customers, data_io, notifications, orders, predictions, realtime, reports, routing
from magicsell.services.broadcaster import Broadcaster
from magicsell.services.operations import OperationsService, PersistenceError
from magicsell.services.route_optimizer import RouteOptimizer, build_geocoder
from magicsell.services.storage import build_storage

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[OperationsService] = None,
    route_optimizer: Optional[RouteOptimizer] = None,
) -> FastAPI:
    """
    Build the API application.

    A pre-built service or route optimizer skips the corresponding startup
    wiring, which is how tests inject in-memory storage and a fake geocoder.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        geocoder = None
        if app.state.service is None:
            storage = build_storage(settings)
            app.state.service = OperationsService.load(storage, Broadcaster(), settings)
        if app.state.route_optimizer is None:
            geocoder = build_geocoder(settings)
            app.state.route_optimizer = RouteOptimizer(settings, geocoder)
        logger.info(f"{settings.app_name} started ({settings.environment}, storage={app.state.service.storage.name})")

        yield

        if geocoder is not None:
            await geocoder.aclose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="API for order, delivery and sales analytics management",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.route_optimizer = route_optimizer

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable, change not saved"})

    # Include routers
    app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
    app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
    app.include_router(analytics.router, prefix="/api", tags=["Sales Analytics"])
    app.include_router(predictions.router, prefix="/api/predictions", tags=["Predictions"])
    app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
    app.include_router(routing.router, prefix="/api", tags=["Delivery Routes"])
    app.include_router(data_io.router, prefix="/api", tags=["Data Export"])
    app.include_router(realtime.router, tags=["Realtime"])

    @app.get("/")
    async def root():
        return {"message": "MagicSell Operations API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "storage": app.state.service.storage.name if app.state.service else None}

    return app


configure_logging(get_settings())
app = create_app()
