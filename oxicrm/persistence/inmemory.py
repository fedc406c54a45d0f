"""In-memory implementation of the repositories."""

from __future__ import annotations

from typing import Dict
from uuid import UUID

from ..errors import InvalidStateError, NotFoundError
from ..models import (
    Email,
    EmailStatus,
    EmailTemplate,
    TimelineActivity,
    WorkflowRun,
    WorkflowVersionStep,
)


class InMemoryEmailRepository:
    """Store emails in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._emails: Dict[UUID, Email] = {}

    async def find_all(self) -> list[Email]:
        return list(self._emails.values())

    async def find_by_id(self, email_id: UUID) -> Email | None:
        return self._emails.get(email_id)

    async def find_pending(self) -> list[Email]:
        return [e for e in self._emails.values() if e.status == EmailStatus.PENDING]

    async def create(self, email: Email) -> Email:
        self._emails[email.id] = email
        return email

    async def update(self, email: Email) -> Email:
        if email.id not in self._emails:
            raise NotFoundError("Email", email.id)
        self._emails[email.id] = email
        return email


class InMemoryEmailTemplateRepository:
    def __init__(self) -> None:
        self._templates: Dict[UUID, EmailTemplate] = {}

    async def find_by_id(self, template_id: UUID) -> EmailTemplate | None:
        return self._templates.get(template_id)

    async def find_by_name(
        self, name: str, workspace_id: UUID | None = None
    ) -> EmailTemplate | None:
        for template in self._templates.values():
            if template.name != name:
                continue
            if workspace_id is None or template.workspace_id == workspace_id:
                return template
        return None

    async def create(self, template: EmailTemplate) -> EmailTemplate:
        existing = await self.find_by_name(template.name, template.workspace_id)
        if existing is not None:
            raise InvalidStateError(f"Template '{template.name}' already exists")
        self._templates[template.id] = template
        return template


class InMemoryTimelineActivityRepository:
    def __init__(self) -> None:
        self._activities: list[TimelineActivity] = []

    async def find_all(self) -> list[TimelineActivity]:
        return list(self._activities)

    async def create(self, activity: TimelineActivity) -> TimelineActivity:
        self._activities.append(activity)
        return activity


class InMemoryWorkflowRunRepository:
    def __init__(self) -> None:
        self._runs: Dict[UUID, WorkflowRun] = {}

    async def find_all(self) -> list[WorkflowRun]:
        return list(self._runs.values())

    async def find_by_id(self, run_id: UUID) -> WorkflowRun | None:
        return self._runs.get(run_id)

    async def create(self, run: WorkflowRun) -> WorkflowRun:
        self._runs[run.id] = run
        return run

    async def update(self, run: WorkflowRun) -> WorkflowRun:
        if run.id not in self._runs:
            raise NotFoundError("Workflow run", run.id)
        self._runs[run.id] = run
        return run


class InMemoryWorkflowVersionStepRepository:
    def __init__(self) -> None:
        self._steps: list[WorkflowVersionStep] = []

    async def find_by_version_id(self, version_id: UUID) -> list[WorkflowVersionStep]:
        return [s for s in self._steps if s.workflow_version_id == version_id]

    async def create(self, step: WorkflowVersionStep) -> WorkflowVersionStep:
        self._steps.append(step)
        return step
