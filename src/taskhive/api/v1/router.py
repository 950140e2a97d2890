from fastapi import APIRouter

from src.taskhive.api.v1 import projects, sprints, tasks, workflow

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(projects.router)
api_router.include_router(workflow.router)
api_router.include_router(tasks.router)
api_router.include_router(sprints.router)
