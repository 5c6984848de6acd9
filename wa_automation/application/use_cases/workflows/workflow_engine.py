"""
Workflow automation engine.

Runs workflows triggered by events, cron schedules and manual requests,
and keeps the cron scheduler in sync with workflow CRUD.

Each run and each background task opens its own session from the
session factory; no session is shared between concurrent runs.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from functools import partial
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wa_automation.application.use_cases.workflows.action_executor import ActionExecutor
from wa_automation.application.use_cases.workflows.condition_evaluator import \
    ConditionEvaluator
from wa_automation.domain.entities.workflow import (ExecutionLogEntry, TriggerConfig,
                                                    parse_actions, parse_conditions)
from wa_automation.domain.exceptions import (AutomationException, ConditionEvaluationError,
                                             ResourceNotFoundException,
                                             SchedulerConfigurationError, ValidationException,
                                             WorkflowDefinitionError, WorkflowInactiveError)
from wa_automation.infrastructure.persistence.models.workflow import (Workflow,
                                                                      WorkflowExecution)
from wa_automation.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowExecutionRepository, WorkflowRepository)
from wa_automation.infrastructure.scheduling.cron_scheduler import (CronScheduler,
                                                                    build_cron_trigger)
from wa_automation.shared.enums import (ExecutionStep, StepStatus, TriggerType,
                                        WorkflowExecutionStatus)
from wa_automation.shared.telemetry.logging import get_logger
from wa_automation.shared.utils import elapsed_ms, utc_now

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"name", "description", "trigger_type", "trigger_config", "conditions", "actions", "is_active"}
)


class WorkflowEngine:
    """Execute workflows and manage their lifecycle"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        action_executor: ActionExecutor,
        scheduler: CronScheduler | None = None,
        condition_evaluator: ConditionEvaluator | None = None,
    ):
        self.session_factory = session_factory
        self.action_executor = action_executor
        self.scheduler = scheduler or CronScheduler()
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()
        self._tasks: set[asyncio.Task] = set()

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """Register every active scheduled workflow, then start the scheduler"""
        logger.info("Initializing workflow engine")
        async with self.session_factory() as session:
            workflows = await WorkflowRepository(session).find_active_scheduled()

        loaded = 0
        for workflow in workflows:
            try:
                self._schedule(workflow)
                loaded += 1
            except SchedulerConfigurationError as e:
                logger.error("Workflow %s is unschedulable: %s", workflow.id, e.message)

        self.scheduler.start()
        logger.info("Workflow engine initialized with %d of %d scheduled workflows", loaded, len(workflows))

    async def shutdown(self) -> None:
        """Stop the scheduler and wait for in-flight runs"""
        logger.info("Shutting down workflow engine")
        await self.scheduler.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # --- CRUD ---

    async def create_workflow(
        self,
        tenant_id: str,
        *,
        name: str,
        trigger_type: str,
        trigger_config: dict[str, Any] | None = None,
        conditions: list[dict[str, Any]] | None = None,
        actions: list[dict[str, Any]] | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> Workflow:
        workflow = Workflow(
            tenant_id=tenant_id,
            name=name,
            description=description,
            trigger_type=trigger_type,
            trigger_config=trigger_config or {},
            conditions=conditions or [],
            actions=actions or [],
            is_active=is_active,
        )
        self._validate_definition(workflow)

        async with self.session_factory.begin() as session:
            workflow = await WorkflowRepository(session).create(workflow)

        if workflow.is_scheduled and workflow.is_active:
            self._schedule(workflow)

        logger.info("Workflow created: %s (id: %s)", workflow.name, workflow.id)
        return workflow

    async def get_workflow(self, workflow_id: str, tenant_id: str) -> Workflow:
        async with self.session_factory() as session:
            workflow = await WorkflowRepository(session).get_by_id(workflow_id, tenant_id)
        if workflow is None:
            raise ResourceNotFoundException("Workflow", workflow_id)
        return workflow

    async def list_workflows(
        self, tenant_id: str, skip: int = 0, limit: int = 100, include_inactive: bool = True
    ) -> list[Workflow]:
        async with self.session_factory() as session:
            return await WorkflowRepository(session).get_by_tenant(
                tenant_id, skip=skip, limit=limit, include_inactive=include_inactive
            )

    async def update_workflow(
        self, workflow_id: str, tenant_id: str, changes: dict[str, Any]
    ) -> Workflow:
        """
        Apply a partial update and reconcile the scheduler entry.

        The timer is only touched when activity or scheduling fields change.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(f"cannot update fields: {', '.join(sorted(unknown))}")

        async with self.session_factory.begin() as session:
            repo = WorkflowRepository(session)
            workflow = await repo.get_by_id(workflow_id, tenant_id)
            if workflow is None:
                raise ResourceNotFoundException("Workflow", workflow_id)

            was_live = workflow.is_scheduled and workflow.is_active
            old_timing = (workflow.trigger_type, workflow.schedule)

            for field, value in changes.items():
                setattr(workflow, field, value)
            self._validate_definition(workflow)

            workflow = await repo.update(workflow)

        is_live = workflow.is_scheduled and workflow.is_active
        timing_changed = (workflow.trigger_type, workflow.schedule) != old_timing
        if is_live and (not was_live or timing_changed):
            self._schedule(workflow)
        elif was_live and not is_live:
            self.scheduler.remove_workflow(workflow.id)

        logger.info("Workflow updated: %s (id: %s)", workflow.name, workflow.id)
        return workflow

    async def delete_workflow(self, workflow_id: str, tenant_id: str) -> None:
        workflow = await self.get_workflow(workflow_id, tenant_id)

        # Deregister before the row goes away so no fire can see a deleted workflow
        self.scheduler.remove_workflow(workflow.id)

        async with self.session_factory.begin() as session:
            await WorkflowRepository(session).soft_delete(workflow_id, tenant_id)

        logger.info("Workflow deleted: %s (id: %s)", workflow.name, workflow.id)

    async def get_executions(
        self, workflow_id: str, tenant_id: str, limit: int = 50
    ) -> list[WorkflowExecution]:
        """Execution history, newest first"""
        async with self.session_factory() as session:
            return await WorkflowExecutionRepository(session).get_by_workflow(
                workflow_id, tenant_id, limit=limit
            )

    async def get_execution(self, execution_id: str, tenant_id: str) -> WorkflowExecution:
        async with self.session_factory() as session:
            execution = await WorkflowExecutionRepository(session).get_by_id(execution_id, tenant_id)
        if execution is None:
            raise ResourceNotFoundException("WorkflowExecution", execution_id)
        return execution

    # --- Triggers ---

    async def execute_workflow(
        self, workflow_id: str, tenant_id: str, trigger_data: dict[str, Any] | None = None
    ) -> WorkflowExecution:
        """Run an active workflow to completion and return its execution record"""
        workflow = await self._get_runnable(workflow_id, tenant_id)
        return await self.run_workflow(workflow, trigger_data or {})

    async def start_workflow(
        self, workflow_id: str, tenant_id: str, trigger_data: dict[str, Any] | None = None
    ) -> asyncio.Task:
        """Validate, then run in the background. The outcome lands in the execution history."""
        workflow = await self._get_runnable(workflow_id, tenant_id)
        return self._spawn(self.run_workflow(workflow, trigger_data or {}))

    async def handle_event(
        self, event_name: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> list[asyncio.Task]:
        """
        Fan an event out to every matching active event workflow.

        Each match runs concurrently on its own task; the tasks are returned
        so callers may await them.
        """
        async with self.session_factory() as session:
            workflows = await WorkflowRepository(session).find_active_event_workflows(tenant_id)

        tasks = []
        for workflow in workflows:
            try:
                trigger = TriggerConfig.from_dict(workflow.trigger_config)
            except WorkflowDefinitionError as e:
                logger.warning("Invalid trigger config for workflow %s: %s", workflow.id, e.message)
                continue
            if trigger.event_name != event_name:
                continue

            logger.info("Workflow '%s' matches event '%s'", workflow.name, event_name)
            tasks.append(self._spawn(self.run_workflow(workflow, dict(data))))

        logger.info("Event %s dispatched to %d workflows", event_name, len(tasks))
        return tasks

    async def _run_scheduled(self, workflow_id: str, schedule: str) -> None:
        """Cron callback: re-read the workflow and hand the run to its own task"""
        async with self.session_factory() as session:
            workflow = await WorkflowRepository(session).get_by_id(workflow_id)

        if workflow is None or not workflow.is_active:
            logger.info("Skipping scheduled run of missing or inactive workflow %s", workflow_id)
            self.scheduler.remove_workflow(workflow_id)
            return

        trigger_data = {
            "triggered_by": "schedule",
            "schedule": schedule,
            "timestamp": utc_now().isoformat(),
        }
        self._spawn(self.run_workflow(workflow, trigger_data))

    # --- Execution ---

    async def run_workflow(
        self, workflow: Workflow, trigger_data: dict[str, Any]
    ) -> WorkflowExecution:
        """
        Execute one workflow run.

        The execution row is created as running and is always finalized,
        even when the run fails or is cancelled. Action failures are counted
        and logged but never stop later actions or fail the run.
        """
        started_at = utc_now()
        async with self.session_factory.begin() as session:
            execution = await WorkflowExecutionRepository(session).create(
                WorkflowExecution(
                    tenant_id=workflow.tenant_id,
                    workflow_id=workflow.id,
                    trigger_data=dict(trigger_data),
                    status=WorkflowExecutionStatus.RUNNING.value,
                    started_at=started_at,
                )
            )

        logger.info("Executing workflow: %s (id: %s)", workflow.name, workflow.id)

        context = dict(trigger_data)
        execution_log: list[ExecutionLogEntry] = []
        status = WorkflowExecutionStatus.COMPLETED
        error_message: str | None = None
        actions_completed = 0
        actions_failed = 0

        try:
            conditions = parse_conditions(workflow.conditions)
            try:
                passed = self.condition_evaluator.evaluate(conditions, context)
            except (ConditionEvaluationError, ValidationException) as e:
                execution_log.append(
                    ExecutionLogEntry(
                        step=ExecutionStep.CONDITION_CHECK,
                        status=StepStatus.FAILED,
                        message="Condition evaluation error",
                        error=e.message,
                    )
                )
                raise ConditionEvaluationError(f"condition evaluation error: {e.message}") from e

            execution_log.append(
                ExecutionLogEntry(
                    step=ExecutionStep.CONDITION_CHECK,
                    status=StepStatus.SUCCESS if passed else StepStatus.SKIPPED,
                    message="Conditions passed" if passed else "Conditions not met",
                )
            )

            if passed:
                actions = parse_actions(workflow.actions)
                for index, action in enumerate(actions, start=1):
                    logger.info(
                        "Executing action %d/%d: %s", index, len(actions), action.type
                    )
                    try:
                        await self.action_executor.execute(action, context, workflow.id)
                    except Exception as e:
                        actions_failed += 1
                        detail = e.message if isinstance(e, AutomationException) else str(e)
                        logger.warning("Action %d (%s) failed: %s", index, action.type, detail)
                        execution_log.append(
                            ExecutionLogEntry(
                                step=ExecutionStep.ACTION_EXECUTE,
                                status=StepStatus.FAILED,
                                message=f"Action {index} failed",
                                action_type=action.type,
                                error=detail,
                            )
                        )
                    else:
                        actions_completed += 1
                        execution_log.append(
                            ExecutionLogEntry(
                                step=ExecutionStep.ACTION_EXECUTE,
                                status=StepStatus.SUCCESS,
                                message=f"Action {index} completed",
                                action_type=action.type,
                            )
                        )
            else:
                logger.info("Conditions not met, skipping workflow %s", workflow.id)
        except (WorkflowDefinitionError, ConditionEvaluationError) as e:
            status = WorkflowExecutionStatus.FAILED
            error_message = e.message
            logger.warning("Workflow %s failed: %s", workflow.id, e.message)
        except asyncio.CancelledError:
            status = WorkflowExecutionStatus.FAILED
            error_message = "execution cancelled"
            raise
        except Exception as e:
            status = WorkflowExecutionStatus.FAILED
            error_message = str(e)
            logger.exception("Unexpected error executing workflow %s", workflow.id)
        finally:
            execution = await self._finalize(
                execution,
                status=status,
                error_message=error_message,
                actions_completed=actions_completed,
                actions_failed=actions_failed,
                execution_log=execution_log,
            )

        logger.info(
            "Workflow execution %s %s: %d/%d actions succeeded",
            execution.id,
            execution.status,
            actions_completed,
            actions_completed + actions_failed,
        )
        return execution

    async def _finalize(
        self,
        execution: WorkflowExecution,
        *,
        status: WorkflowExecutionStatus,
        error_message: str | None,
        actions_completed: int,
        actions_failed: int,
        execution_log: list[ExecutionLogEntry],
    ) -> WorkflowExecution:
        completed_at = utc_now()
        async with self.session_factory.begin() as session:
            execution = await session.merge(execution)
            execution.status = status.value
            execution.error_message = error_message
            execution.actions_completed = actions_completed
            execution.actions_failed = actions_failed
            execution.execution_log = [entry.to_dict() for entry in execution_log]
            execution.completed_at = completed_at
            execution.duration_ms = elapsed_ms(execution.started_at, completed_at)
            await session.flush()
            await session.refresh(execution)
        return execution

    # --- Helpers ---

    async def _get_runnable(self, workflow_id: str, tenant_id: str) -> Workflow:
        workflow = await self.get_workflow(workflow_id, tenant_id)
        if not workflow.is_active:
            raise WorkflowInactiveError(workflow_id)
        return workflow

    def _schedule(self, workflow: Workflow) -> None:
        schedule = workflow.schedule
        if not schedule:
            raise SchedulerConfigurationError(
                "scheduled workflow has no schedule", workflow_id=workflow.id
            )
        self.scheduler.add_workflow(
            workflow.id, schedule, partial(self._run_scheduled, workflow.id, schedule)
        )

    @staticmethod
    def _validate_definition(workflow: Workflow) -> None:
        if workflow.trigger_type not in TriggerType.values():
            raise ValidationException(
                f"invalid trigger type: {workflow.trigger_type}", field="trigger_type"
            )
        trigger = TriggerConfig.from_dict(workflow.trigger_config)
        if workflow.trigger_type == TriggerType.EVENT.value and not trigger.event_name:
            raise ValidationException(
                "event workflows require trigger_config.event_name", field="trigger_config"
            )
        if workflow.trigger_type == TriggerType.SCHEDULED.value:
            if not trigger.schedule:
                raise SchedulerConfigurationError(
                    "scheduled workflows require trigger_config.schedule", workflow_id=workflow.id
                )
            build_cron_trigger(trigger.schedule)
        parse_conditions(workflow.conditions)
        parse_actions(workflow.actions)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background workflow run failed: %s", task.exception())
