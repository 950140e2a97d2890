"""Shared Temporal client used by the API to start lifecycle workflows."""

import asyncio

from temporalio.client import Client

from src.taskhive.core.config import get_settings
from src.taskhive.core.logging import get_logger

logger = get_logger(__name__)

_client: Client | None = None
_connect_lock = asyncio.Lock()


async def get_temporal_client() -> Client:
    """Connect on first use; concurrent first callers share one connection."""
    global _client
    if _client is not None:
        return _client
    async with _connect_lock:
        if _client is None:
            settings = get_settings()
            _client = await Client.connect(
                settings.temporal_host,
                namespace=settings.temporal_namespace,
            )
            logger.info(
                "Connected to Temporal",
                host=settings.temporal_host,
                namespace=settings.temporal_namespace,
            )
    return _client


async def close_temporal_client() -> None:
    """Drop the shared client during shutdown."""
    global _client
    if _client is not None:
        logger.info("Closing Temporal client")
        _client = None
