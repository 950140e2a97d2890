from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.taskhive.api.middlewares import setup_middlewares
from src.taskhive.api.v1.router import api_router
from src.taskhive.core.config import get_settings
from src.taskhive.core.db import close_tenant_router, dispose_engine, get_tenant_router
from src.taskhive.core.exceptions import setup_exception_handlers
from src.taskhive.core.health import setup_health_endpoint, setup_metrics
from src.taskhive.core.logging import get_logger, setup_logging
from src.taskhive.core.tracking import request_tracker
from src.taskhive.temporal.client import close_temporal_client

logger = get_logger(__name__)


async def _drain_requests(grace_period: float) -> None:
    logger.info(
        "Shutdown initiated",
        in_flight_requests=request_tracker.in_flight_count,
        grace_period=grace_period,
    )
    await request_tracker.start_draining()
    if not await request_tracker.wait_for_drain(timeout=grace_period):
        logger.warning(
            "Shutdown grace period expired",
            in_flight_requests=request_tracker.in_flight_count,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Start the idle reaper; on shutdown drain requests, then every project database."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting service", app_name=settings.app_name)
    get_tenant_router().start_idle_reaper(settings.tenant_idle_check_interval_seconds)

    yield

    await _drain_requests(settings.shutdown_grace_period)
    # Requests have drained; dispose the project database pools, dropping nothing
    await close_tenant_router()
    await close_temporal_client()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "projects", "description": "Project registry and database lifecycle"},
    {"name": "workflow", "description": "Per-project status workflow"},
    {"name": "tasks", "description": "Tasks and status transitions"},
    {"name": "sprints", "description": "Sprint lifecycle and statistics"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant project management API with a database per project",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)
    setup_middlewares(app, settings)
    app.include_router(api_router)
    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
