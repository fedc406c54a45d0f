"""Outbound email use case."""

from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from ..clock import Clock, SystemClock
from ..errors import NotFoundError
from ..models import (
    NIL_UUID,
    Email,
    EmailDirection,
    EmailStatus,
    TimelineActivity,
)
from ..persistence import (
    EmailRepository,
    EmailTemplateRepository,
    TimelineActivityRepository,
)
from .delivery import deliver
from .provider import EmailProvider
from .templates import TemplateEngine

logger = logging.getLogger(__name__)


class SendEmailInput(BaseModel):
    from_email: str
    to_email: str
    cc_emails: Optional[list[str]] = None
    bcc_emails: Optional[list[str]] = None
    subject: str = ""
    body_text: str = ""
    body_html: Optional[str] = None
    template_id: Optional[UUID] = None
    template_variables: Optional[dict[str, Any]] = None
    person_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    opportunity_id: Optional[UUID] = None
    task_id: Optional[UUID] = None
    workflow_id: Optional[UUID] = None
    workflow_run_id: Optional[UUID] = None
    workspace_id: UUID = NIL_UUID


class SendEmail:
    """Render, persist, deliver and record an outbound email.

    Validation and template lookup failures are raised before anything is
    persisted. Provider failures are recorded on the returned email
    (``status=FAILED``) instead of being raised.
    """

    def __init__(
        self,
        email_repo: EmailRepository,
        template_repo: EmailTemplateRepository,
        timeline_repo: TimelineActivityRepository,
        provider: EmailProvider,
        template_engine: TemplateEngine | None = None,
        clock: Clock | None = None,
        provider_timeout: float | None = None,
    ) -> None:
        self._email_repo = email_repo
        self._template_repo = template_repo
        self._timeline_repo = timeline_repo
        self._provider = provider
        self._templates = template_engine or TemplateEngine()
        self._clock = clock or SystemClock()
        self._provider_timeout = provider_timeout

    async def _resolve_content(
        self, data: SendEmailInput
    ) -> tuple[str, str, Optional[str]]:
        if data.template_id is None:
            return data.subject, data.body_text, data.body_html

        template = await self._template_repo.find_by_id(data.template_id)
        if template is None:
            raise NotFoundError("Email template", data.template_id)

        variables = data.template_variables or {}
        body_html = (
            self._templates.render(template.body_html, variables)
            if template.body_html is not None
            else None
        )
        return (
            self._templates.render(template.subject, variables),
            self._templates.render(template.body_text, variables),
            body_html,
        )

    async def execute(self, data: SendEmailInput) -> Email:
        subject, body_text, body_html = await self._resolve_content(data)

        now = self._clock.now()
        email = Email(
            created_at=now,
            updated_at=now,
            direction=EmailDirection.OUTBOUND,
            status=EmailStatus.PENDING,
            from_email=data.from_email,
            to_email=data.to_email,
            cc_emails=data.cc_emails,
            bcc_emails=data.bcc_emails,
            subject=subject,
            body_text=body_text,
            body_html=body_html,
            email_template_id=data.template_id,
            person_id=data.person_id,
            company_id=data.company_id,
            opportunity_id=data.opportunity_id,
            task_id=data.task_id,
            workflow_id=data.workflow_id,
            workflow_run_id=data.workflow_run_id,
            workspace_id=data.workspace_id,
        )
        email.ensure_valid()

        email = await self._email_repo.create(email)
        email = await self._email_repo.update(
            await deliver(email, self._provider, self._clock, self._provider_timeout)
        )

        activity = await self._timeline_repo.create(
            TimelineActivity(
                created_at=self._clock.now(),
                name=f"Email sent to {email.to_email}",
                person_id=email.person_id,
                company_id=email.company_id,
                opportunity_id=email.opportunity_id,
                task_id=email.task_id,
                workflow_id=email.workflow_id,
                workspace_id=email.workspace_id,
            )
        )
        return await self._email_repo.update(
            email.model_copy(update={"timeline_activity_id": activity.id})
        )
