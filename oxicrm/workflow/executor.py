"""Workflow execution engine."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from ..clock import Clock, SystemClock
from ..email import SendEmail
from ..errors import DomainError, InvalidStateError
from ..models import NIL_UUID, WorkflowRun, WorkflowRunStatus
from ..persistence import WorkflowRunRepository, WorkflowVersionStepRepository
from .steps import StepContext, StepInterpreter

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """Runs the steps of a workflow version in position order.

    A run starts ``RUNNING`` and ends ``COMPLETED`` when every step
    succeeds, or ``FAILED`` at the first step error. Step errors end up on
    the returned run; they are not raised.
    """

    def __init__(
        self,
        run_repo: WorkflowRunRepository,
        step_repo: WorkflowVersionStepRepository,
        send_email: SendEmail,
        clock: Clock | None = None,
        interpreter: StepInterpreter | None = None,
    ) -> None:
        self._run_repo = run_repo
        self._step_repo = step_repo
        self._clock = clock or SystemClock()
        self._interpreter = interpreter or StepInterpreter(send_email)

    async def _finish(
        self,
        run: WorkflowRun,
        status: WorkflowRunStatus,
        output: Dict[str, Any],
        error: Optional[str] = None,
    ) -> WorkflowRun:
        if run.status != WorkflowRunStatus.RUNNING:
            raise InvalidStateError(
                f"Workflow run {run.id} is already {run.status.value}"
            )
        return await self._run_repo.update(
            run.model_copy(
                update={
                    "status": status,
                    "output": output,
                    "error": error,
                    "updated_at": self._clock.now(),
                }
            )
        )

    async def execute_workflow(
        self,
        workflow_version_id: UUID,
        workspace_id: UUID = NIL_UUID,
        workflow_id: Optional[UUID] = None,
    ) -> WorkflowRun:
        now = self._clock.now()
        run = await self._run_repo.create(
            WorkflowRun(
                created_at=now,
                updated_at=now,
                workflow_version_id=workflow_version_id,
                status=WorkflowRunStatus.RUNNING,
            )
        )
        logger.info(f"Workflow run {run.id} started for version {workflow_version_id}")

        steps = await self._step_repo.find_by_version_id(workflow_version_id)
        # sorted() is stable: equal positions keep repository order
        steps = sorted(steps, key=lambda step: step.position)

        context = StepContext(run=run, workspace_id=workspace_id, workflow_id=workflow_id)
        output: Dict[str, Any] = {"steps_executed": 0, "email_ids": []}
        for step in steps:
            try:
                result = await self._interpreter.execute(step, context)
            except DomainError as e:
                logger.error(
                    f"Workflow run {run.id} failed at step {step.id} "
                    f"(position {step.position}): {e}"
                )
                return await self._finish(
                    run, WorkflowRunStatus.FAILED, output, error=str(e)
                )
            output["steps_executed"] += 1
            if result and "email_id" in result:
                output["email_ids"].append(result["email_id"])

        logger.info(f"Workflow run {run.id} completed ({len(steps)} steps)")
        return await self._finish(run, WorkflowRunStatus.COMPLETED, output)
