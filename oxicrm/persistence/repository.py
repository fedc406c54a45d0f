"""Repository abstractions for the records the pipeline reads and writes."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from ..models import (
    Email,
    EmailTemplate,
    TimelineActivity,
    WorkflowRun,
    WorkflowVersionStep,
)


class EmailRepository(Protocol):
    """Protocol for email persistence backends."""

    async def find_all(self) -> list[Email]:
        """Return all emails."""

    async def find_by_id(self, email_id: UUID) -> Email | None:
        """Retrieve an email by id."""

    async def find_pending(self) -> list[Email]:
        """Return every email whose status is pending."""

    async def create(self, email: Email) -> Email:
        """Persist a new email."""

    async def update(self, email: Email) -> Email:
        """Replace the stored version of an existing email."""


class EmailTemplateRepository(Protocol):
    async def find_by_id(self, template_id: UUID) -> EmailTemplate | None:
        """Retrieve a template by id."""

    async def find_by_name(
        self, name: str, workspace_id: UUID | None = None
    ) -> EmailTemplate | None:
        """Retrieve a template by its per-workspace unique name."""

    async def create(self, template: EmailTemplate) -> EmailTemplate:
        """Persist a new template."""


class TimelineActivityRepository(Protocol):
    async def find_all(self) -> list[TimelineActivity]:
        """Return all timeline activities."""

    async def create(self, activity: TimelineActivity) -> TimelineActivity:
        """Append a timeline activity."""


class WorkflowRunRepository(Protocol):
    async def find_all(self) -> list[WorkflowRun]:
        """Return all workflow runs."""

    async def find_by_id(self, run_id: UUID) -> WorkflowRun | None:
        """Retrieve a run by id."""

    async def create(self, run: WorkflowRun) -> WorkflowRun:
        """Persist a new run."""

    async def update(self, run: WorkflowRun) -> WorkflowRun:
        """Replace the stored version of an existing run."""


class WorkflowVersionStepRepository(Protocol):
    async def find_by_version_id(self, version_id: UUID) -> list[WorkflowVersionStep]:
        """Return the steps of a workflow version in insertion order."""

    async def create(self, step: WorkflowVersionStep) -> WorkflowVersionStep:
        """Persist a new step."""
