"""Time-based sweeps: due-date workflows, scheduled workflows and overdue tasks.

Invoked by an external timer (POST /scheduler/run). Each sweep is independent
and contains its own errors; a failing workflow or task is logged and skipped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from taskflow.application.dtos.task import TaskQuery, TaskRecord
from taskflow.application.interfaces.repositories import ITaskRepository, IWorkflowRepository
from taskflow.application.interfaces.services import IEntityCache, INotificationSink
from taskflow.application.services.schedule_rules import due_date_slot_open, should_execute
from taskflow.core.config import Settings, get_settings
from taskflow.core.constants import CACHE_KIND_WORKFLOWS, NOTIFICATION_OVERDUE, TASK_STATUS_DONE
from taskflow.domain.entities.triggers import (
    DueDateApproachingData,
    DueDateConfig,
    ScheduleConfig,
    ScheduledData,
)
from taskflow.domain.entities.workflow import WorkflowDefinition
from taskflow.infrastructure.services.workflow_engine import WorkflowEngine
from taskflow.shared.enums import TriggerType
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import traced
from taskflow.shared.utils.datetime import local_midnight, local_today, to_local, utc_now

logger = get_logger(__name__)


@dataclass
class SchedulerRunSummary:
    """Counts reported by run_all (one entry per sweep)."""

    due_date_executions: int = 0
    scheduled_executions: int = 0
    overdue_notifications: int = 0
    errors: list[str] = field(default_factory=list)


class WorkflowScheduler:
    """Runs the time-based sweeps against the workflow engine."""

    def __init__(
        self,
        engine: WorkflowEngine,
        workflow_repo: IWorkflowRepository,
        task_repo: ITaskRepository,
        workflow_cache: IEntityCache,
        notification_sink: INotificationSink,
        settings: Settings | None = None,
    ) -> None:
        self.engine = engine
        self.workflow_repo = workflow_repo
        self.task_repo = task_repo
        self.workflow_cache = workflow_cache
        self.notification_sink = notification_sink
        self.settings = settings or get_settings()

    async def _active_workflows(self, trigger_type: TriggerType) -> list[WorkflowDefinition]:
        workflows = await self.workflow_cache.get_or_load(
            CACHE_KIND_WORKFLOWS,
            trigger_type.value,
            loader=lambda: self.workflow_repo.list_active_by_trigger(trigger_type.value),
        )
        return workflows or []

    async def _forget_workflows(self, trigger_type: TriggerType) -> None:
        """Drop the cached list so the next sweep sees fresh last_executed values."""
        try:
            await self.workflow_cache.invalidate(CACHE_KIND_WORKFLOWS, trigger_type.value)
        except Exception:
            logger.exception("Failed to invalidate cached %s workflows", trigger_type.value)

    async def _claim(self, workflow: WorkflowDefinition, now: datetime) -> bool:
        """Exclusive mode only: compare-and-swap last_executed before running."""
        if not self.settings.scheduler_exclusive_runs:
            return True
        claimed = await self.workflow_repo.claim_scheduled_run(
            workflow.id, workflow.last_executed, now
        )
        if not claimed:
            logger.info("Workflow %s already claimed by another runner, skipping", workflow.id)
        return claimed

    async def _mark_executed(self, workflow: WorkflowDefinition, now: datetime) -> None:
        # Also written after due-date sweeps, not only calendar schedules: for
        # due_date_approaching workflows last_executed is the once-per-day marker
        # read by _ran_today.
        if self.settings.scheduler_exclusive_runs:
            return
        await self.workflow_repo.update_last_executed(workflow.id, now)

    def _ran_today(self, workflow: WorkflowDefinition, now: datetime) -> bool:
        # Due-date dedup marker, see _mark_executed
        if workflow.last_executed is None:
            return False
        tz = self.settings.tzinfo
        return to_local(workflow.last_executed, tz).date() == local_today(now, tz)

    @traced("scheduler.due_date")
    async def process_due_date_workflows(self, now: datetime | None = None) -> int:
        """Run due_date_approaching workflows for tasks due in days_before days.

        A workflow is evaluated once per local day, inside the time window of
        its time_of_day. Matching tasks are processed in bounded batches.

        Returns:
            Number of executions started.
        """
        now = now or utc_now()
        try:
            workflows = await self._active_workflows(TriggerType.DUE_DATE_APPROACHING)
        except Exception:
            logger.exception("Failed to load due-date workflows")
            return 0

        executed = 0
        dispatched = False
        for workflow in workflows:
            try:
                config = workflow.trigger_config
                if not isinstance(config, DueDateConfig):
                    continue
                if not due_date_slot_open(
                    config,
                    now,
                    self.settings.tzinfo,
                    self.settings.scheduler_window_minutes,
                    self.settings.default_due_date_check_time,
                ):
                    continue
                if self._ran_today(workflow, now):
                    logger.debug("Due-date workflow %s already ran today", workflow.id)
                    continue
                if not await self._claim(workflow, now):
                    continue
                executed += await self._run_due_date_workflow(workflow, config, now)
                await self._mark_executed(workflow, now)
                dispatched = True
            except Exception:
                logger.exception("Due-date workflow %s failed, skipping", workflow.id)
        if dispatched:
            await self._forget_workflows(TriggerType.DUE_DATE_APPROACHING)
        logger.info("Due-date sweep: %s execution(s)", executed)
        return executed

    async def _run_due_date_workflow(
        self, workflow: WorkflowDefinition, config: DueDateConfig, now: datetime
    ) -> int:
        threshold = local_today(now, self.settings.tzinfo) + timedelta(days=config.days_before)
        tasks = await self.task_repo.find(
            TaskQuery(
                project_id=workflow.project_id,
                exclude_status=TASK_STATUS_DONE,
                due_date=threshold,
                priorities=tuple(config.priority_filter) if config.priority_filter else None,
            )
        )
        if not tasks:
            return 0
        logger.info(
            "Due-date workflow %s: %s task(s) due on %s",
            workflow.id,
            len(tasks),
            threshold.isoformat(),
        )

        batch_size = self.settings.due_date_batch_size
        delay = self.settings.due_date_batch_delay_ms / 1000
        executed = 0
        for start in range(0, len(tasks), batch_size):
            if start:
                await asyncio.sleep(delay)
            batch = tasks[start : start + batch_size]
            results = await asyncio.gather(
                *(self._execute_for_task(workflow, config, task) for task in batch),
                return_exceptions=True,
            )
            for task, result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.error(
                        "Due-date workflow %s failed for task %s: %s",
                        workflow.id,
                        task.id,
                        result,
                    )
                else:
                    executed += 1
        return executed

    async def _execute_for_task(
        self, workflow: WorkflowDefinition, config: DueDateConfig, task: TaskRecord
    ) -> None:
        trigger_data = DueDateApproachingData(
            project_id=workflow.project_id,
            task_id=task.id,
            due_date=task.due_date,
            days_until_due=config.days_before,
            metadata={"priority": task.priority, "assigned_to": task.assigned_to},
        )
        await self.engine.execute_workflow(workflow.id, trigger_data)

    @traced("scheduler.scheduled")
    async def process_scheduled_workflows(self, now: datetime | None = None) -> int:
        """Run scheduled workflows whose daily/weekly/monthly slot is open.

        Returns:
            Number of workflows executed.
        """
        now = now or utc_now()
        try:
            workflows = await self._active_workflows(TriggerType.SCHEDULED)
        except Exception:
            logger.exception("Failed to load scheduled workflows")
            return 0

        executed = 0
        for workflow in workflows:
            try:
                config = workflow.trigger_config
                if not isinstance(config, ScheduleConfig):
                    continue
                if not should_execute(
                    config,
                    workflow.last_executed,
                    now,
                    self.settings.tzinfo,
                    self.settings.scheduler_window_minutes,
                ):
                    continue
                if not await self._claim(workflow, now):
                    continue
                trigger_data = ScheduledData(
                    project_id=workflow.project_id,
                    timestamp=now,
                    metadata={
                        "schedule_type": config.schedule_type,
                        "scheduled_at": now.isoformat(),
                    },
                )
                execution = await self.engine.execute_workflow(workflow.id, trigger_data)
                await self._mark_executed(workflow, now)
                executed += 1
                logger.info(
                    "Scheduled workflow %s ran (%s)", workflow.id, execution.status.value
                )
            except Exception:
                logger.exception("Scheduled workflow %s failed, skipping", workflow.id)
        if executed:
            await self._forget_workflows(TriggerType.SCHEDULED)
        logger.info("Scheduled sweep: %s workflow(s) executed", executed)
        return executed

    @traced("scheduler.overdue")
    async def process_overdue_tasks(self, now: datetime | None = None) -> int:
        """Notify assignee (or creator) of each open overdue task, once per day.

        Returns:
            Number of notifications sent.
        """
        now = now or utc_now()
        tz = self.settings.tzinfo
        today = local_today(now, tz)
        since = local_midnight(today, tz)
        try:
            tasks = await self.task_repo.find(
                TaskQuery(exclude_status=TASK_STATUS_DONE, due_before=today)
            )
        except Exception:
            logger.exception("Failed to load overdue tasks")
            return 0

        sent = 0
        for task in tasks:
            try:
                if task.due_date is None:
                    continue
                if await self.notification_sink.exists_for_task_since(
                    task.id, NOTIFICATION_OVERDUE, since
                ):
                    continue
                days_overdue = (today - task.due_date).days
                await self.notification_sink.send(
                    task.notification_recipient,
                    "Task overdue",
                    f'Task "{task.title}" is {days_overdue} day(s) overdue',
                    notification_type=NOTIFICATION_OVERDUE,
                    priority="high",
                    metadata={
                        "due_date": task.due_date.isoformat(),
                        "days_overdue": days_overdue,
                    },
                    task_id=task.id,
                    project_id=task.project_id,
                )
                sent += 1
            except Exception:
                logger.exception("Overdue notification for task %s failed, skipping", task.id)
        logger.info("Overdue sweep: %s notification(s) sent", sent)
        return sent

    async def run_all(self, now: datetime | None = None) -> SchedulerRunSummary:
        """Run every sweep; one failing sweep does not stop the others."""
        now = now or utc_now()
        summary = SchedulerRunSummary()
        sweeps = (
            ("due_date_executions", self.process_due_date_workflows),
            ("scheduled_executions", self.process_scheduled_workflows),
            ("overdue_notifications", self.process_overdue_tasks),
        )
        for name, sweep in sweeps:
            try:
                setattr(summary, name, await sweep(now))
            except Exception as e:
                logger.exception("Scheduler sweep %s failed", name)
                summary.errors.append(f"{name}: {e}")
        return summary
