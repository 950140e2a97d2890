"""Service health and metrics endpoints.

``/health`` reports on the registry database, the Temporal connection and the
tenant router. The registry is required: without it no project can be resolved,
so a failure there makes the service unhealthy. Temporal only backs the
asynchronous lifecycle events, so losing it degrades the service instead.
Results are cached for a few seconds so load balancers polling the endpoint do
not open a registry connection per probe.
"""

import secrets
import time
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.taskhive.core.config import get_settings
from src.taskhive.core.db import get_session, get_tenant_router
from src.taskhive.core.logging import get_logger
from src.taskhive.core.tracking import request_tracker
from src.taskhive.temporal.client import get_temporal_client

logger = get_logger(__name__)

HEALTH_CACHE_TTL = 10.0  # seconds


@dataclass
class _CachedReport:
    report: dict[str, Any]
    taken_at: float


_cached: _CachedReport | None = None


def reset_health_cache() -> None:
    """Forget the cached report (for testing)."""
    global _cached
    _cached = None


async def _check_registry() -> str:
    async with get_session() as session:
        await session.execute(text("SELECT 1"))
    return "healthy"


async def _check_temporal() -> str:
    await get_temporal_client()
    return "healthy"


async def collect_health() -> dict[str, Any]:
    """Run every dependency check and fold the results into one report."""
    report: dict[str, Any] = {
        "status": "healthy",
        "database": "unknown",
        "temporal": "unknown",
        "tenants": get_tenant_router().stats(),
        "cached": False,
        "timestamp": time.time(),
    }

    try:
        report["database"] = await _check_registry()
    except Exception as e:
        logger.warning("Registry health check failed", error=str(e))
        report["database"] = f"unhealthy: {e!s}"
        report["status"] = "unhealthy"

    try:
        report["temporal"] = await _check_temporal()
    except Exception as e:
        logger.warning("Temporal health check failed", error=str(e))
        report["temporal"] = f"unhealthy: {e!s}"
        if report["status"] == "healthy":
            report["status"] = "degraded"

    return report


def _respond(report: dict[str, Any]) -> JSONResponse:
    status_code = 200 if report["status"] == "healthy" else 503
    return JSONResponse(content=report, status_code=status_code)


def setup_health_endpoint(app: FastAPI) -> None:
    """Register ``/health`` on the app."""

    @app.get("/health")
    async def health() -> JSONResponse:
        global _cached

        if request_tracker.is_draining:
            return JSONResponse(
                content={
                    "status": "draining",
                    "in_flight_requests": request_tracker.in_flight_count,
                    "tenants": get_tenant_router().stats(),
                },
                status_code=503,
            )

        now = time.time()
        if _cached is not None and now - _cached.taken_at < HEALTH_CACHE_TTL:
            report = dict(_cached.report, cached=True)
            report["cache_age_seconds"] = round(now - _cached.taken_at, 1)
            return _respond(report)

        report = await collect_health()
        _cached = _CachedReport(report=report, taken_at=now)
        return _respond(report)


def _require_metrics_key(expected: str) -> Any:
    header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def verify(api_key: str | None = Depends(header)) -> None:
        if api_key is None or not secrets.compare_digest(api_key, expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    return Depends(verify)


def setup_metrics(app: FastAPI) -> None:
    """Expose Prometheus metrics, behind ``X-Metrics-Key`` when one is configured."""
    settings = get_settings()
    instrumentator = Instrumentator().instrument(app)
    dependencies = []
    if settings.metrics_api_key:
        dependencies.append(_require_metrics_key(settings.metrics_api_key))
    instrumentator.expose(app, endpoint="/metrics", dependencies=dependencies)
