"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.taskhive.core.config import Settings

from .logging_context import logging_context_middleware
from .request_tracking import request_tracking_middleware

__all__ = [
    "setup_middlewares",
    "logging_context_middleware",
    "request_tracking_middleware",
]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Install middlewares, innermost first.

    Request flow: correlation id, CORS, logging context, then request tracking,
    so a request refused while draining is still logged with its request id.
    """
    app.middleware("http")(request_tracking_middleware)
    app.middleware("http")(logging_context_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-Actor-ID", "X-Request-ID"],
    )
    app.add_middleware(CorrelationIdMiddleware)
