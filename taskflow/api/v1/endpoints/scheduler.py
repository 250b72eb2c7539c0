"""Scheduler API: entry point for the external timer."""

from typing import Annotated

from fastapi import APIRouter, Depends

from taskflow.api.v1.dependencies import (
    WorkflowServices,
    get_services,
    verify_scheduler_secret,
)
from taskflow.schemas.scheduler import SchedulerRunResponse

router = APIRouter()


@router.post(
    "/run",
    response_model=SchedulerRunResponse,
    dependencies=[Depends(verify_scheduler_secret)],
)
async def run_scheduler(
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Run the due-date, scheduled and overdue sweeps once.

    Call every few minutes (cron, Cloud Scheduler). Requires the
    X-Scheduler-Secret header when SCHEDULER_SECRET is set.
    """
    summary = await services.scheduler.run_all()
    return SchedulerRunResponse.model_validate(summary)
