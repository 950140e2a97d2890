"""Domain error taxonomy and exception handlers with request_id in responses."""

from typing import Any, ClassVar

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.taskhive.core.logging import get_logger

logger = get_logger(__name__)


class TaskhiveError(Exception):
    """Base class for domain errors.

    Carries a human-readable message plus structured context (project id,
    namespace, task id, status names) that ends up in logs and API responses.
    """

    status_code: ClassVar[int] = 500
    error_code: ClassVar[str] = "internal_error"
    retryable: bool = False

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: _jsonable(value) for key, value in context.items()}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "detail": self.message, "context": self.context}


class NotFoundError(TaskhiveError):
    status_code = 404
    error_code = "not_found"


class ConflictError(TaskhiveError):
    status_code = 409
    error_code = "conflict"


class TransitionConflictError(ConflictError):
    """Task status changed between read and write; the caller may retry."""

    error_code = "transition_conflict"
    retryable = True


class InvalidTransitionError(TaskhiveError):
    status_code = 422
    error_code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, **context: Any) -> None:
        super().__init__(
            f"Transition from '{from_status}' to '{to_status}' is not allowed",
            from_status=from_status,
            to_status=to_status,
            **context,
        )
        self.from_status = from_status
        self.to_status = to_status


class InvalidStateError(TaskhiveError):
    status_code = 409
    error_code = "invalid_state"


class ProvisioningFailedError(TaskhiveError):
    """Creating or dropping a tenant database failed.

    ``retryable`` marks transient failures that the router may retry with backoff.
    """

    status_code = 503
    error_code = "provisioning_failed"

    def __init__(self, message: str, *, retryable: bool = False, **context: Any) -> None:
        super().__init__(message, **context)
        self.retryable = retryable


class DatabaseInUseError(ProvisioningFailedError):
    """DROP DATABASE refused because sessions are still attached."""

    error_code = "database_in_use"


class DatabaseDropFailedError(ProvisioningFailedError):
    """Drop failed again after attached sessions were terminated. Not retried."""

    status_code = 500
    error_code = "database_drop_failed"


class TenantUnavailableError(TaskhiveError):
    """The tenant handle is draining or the operation was cancelled by a release."""

    status_code = 503
    error_code = "tenant_unavailable"


class OperationTimeoutError(TaskhiveError):
    status_code = 504
    error_code = "timeout"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return str(value)


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(TaskhiveError)
    async def taskhive_exception_handler(request: Request, exc: TaskhiveError) -> JSONResponse:
        request_id = correlation_id.get()
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            error=exc.error_code,
            detail=exc.message,
            path=request.url.path,
            **exc.context,
        )
        content = exc.to_dict()
        content["request_id"] = request_id
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
