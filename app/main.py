"""Snow ticket service: FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.adapters.persistence.database import engine
from app.config import settings
from app.domain.errors import (
    ConflictError,
    DomainError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from app.infrastructure.api.routes_assignments import router as assignments_router
from app.infrastructure.api.routes_health import router as health_router
from app.infrastructure.api.routes_tickets import router as tickets_router
from app.infrastructure.api.routes_trips import router as trips_router

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[DomainError], int] = {
    NotFoundError: 404,
    InvalidInputError: 400,
    ConflictError: 409,
    PermissionDeniedError: 403,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Missing compliance thresholds must stop the service, not the first request.
    thresholds = settings.compliance_thresholds()
    logger.info(
        "Compliance thresholds: min entry ratio %.2f, exit tolerance %.2f m3, area window %s",
        thresholds.min_entry_volume_ratio,
        thresholds.exit_volume_tolerance,
        thresholds.area_work_window,
    )
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code == 500:
        logger.error("Unmapped domain error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


def create_app() -> FastAPI:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Snow Ticket Service",
        description="Snow-removal tickets, driver assignments and trip compliance",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(DomainError, domain_error_handler)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(tickets_router, prefix="/api")
    app.include_router(assignments_router, prefix="/api")
    app.include_router(trips_router, prefix="/api")

    return app


app = create_app()
