"""In-flight request accounting for graceful shutdown."""

from asgi_correlation_id import correlation_id
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint

from src.taskhive.core.exceptions import TenantUnavailableError
from src.taskhive.core.tracking import request_tracker

UNTRACKED_PATHS = frozenset({"/health", "/metrics"})


async def request_tracking_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Count API requests so shutdown can drain them; refuse new ones once draining."""
    if request.url.path in UNTRACKED_PATHS:
        return await call_next(request)

    if request_tracker.is_draining:
        error = TenantUnavailableError("Service is shutting down", path=request.url.path)
        content = error.to_dict()
        content["request_id"] = correlation_id.get()
        return JSONResponse(status_code=error.status_code, content=content)

    async with request_tracker.track():
        return await call_next(request)
