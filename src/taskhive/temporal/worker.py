"""
Temporal worker process: runs project lifecycle workflows and their activities.

Run with:
    python -m src.taskhive.temporal.worker
"""

import argparse
import asyncio
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.worker import Worker

from src.taskhive.core.config import get_settings
from src.taskhive.core.db import close_tenant_router, dispose_engine
from src.taskhive.core.logging import get_logger, setup_logging
from src.taskhive.temporal.activities import (
    delete_project_resources,
    dispose_sync_engine,
    provision_project_database,
    update_project_status,
)
from src.taskhive.temporal.client import close_temporal_client, get_temporal_client
from src.taskhive.temporal.workflows import ProjectDeletionWorkflow, ProjectProvisioningWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001

WORKFLOWS: list[type] = [ProjectProvisioningWorkflow, ProjectDeletionWorkflow]
ACTIVITIES = [provision_project_database, delete_project_resources, update_project_status]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Temporal worker")
    parser.add_argument(
        "--max-concurrent-activities",
        type=int,
        default=20,
        help="Database provisioning is heavy; keep this low (default: 20)",
    )
    parser.add_argument("--health-port", type=int, default=WORKER_HEALTH_PORT)
    return parser.parse_args()


def create_worker(
    client: Client,
    task_queue: str,
    workflows: Sequence[type],
    activities: Sequence[object],  # type: ignore[type-arg]
    *,
    max_concurrent_activities: int = 20,
    max_concurrent_workflow_tasks: int = 20,
) -> Worker:
    """Build a worker for the project lifecycle task queue."""
    return Worker(
        client,
        task_queue=task_queue,
        workflows=list(workflows),
        activities=list(activities),  # type: ignore[arg-type]
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


def create_health_app(task_queue: str) -> FastAPI:
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    return health_app


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Serve liveness and readiness probes next to the worker."""
    config = uvicorn.Config(
        create_health_app(task_queue),
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info("Starting worker health server", port=port)
    await server.serve()


async def main() -> None:
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.debug)

    client = await get_temporal_client()
    worker = create_worker(
        client,
        settings.temporal_task_queue,
        WORKFLOWS,
        ACTIVITIES,
        max_concurrent_activities=args.max_concurrent_activities,
    )
    logger.info("Starting worker", task_queue=settings.temporal_task_queue)

    try:
        await asyncio.gather(
            worker.run(),
            run_health_server(settings.temporal_task_queue, args.health_port),
        )
    finally:
        dispose_sync_engine()
        await close_tenant_router()
        await close_temporal_client()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
