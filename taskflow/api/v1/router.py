"""API v1 router: mounts every endpoint module under its prefix."""

from fastapi import APIRouter

from taskflow.api.v1.endpoints import executions, health, scheduler, workflows

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(workflows.router, prefix="/workflows", tags=["workflows"])
api_router.include_router(executions.router, prefix="/executions", tags=["executions"])
api_router.include_router(scheduler.router, prefix="/scheduler", tags=["scheduler"])
