"""Inbound email use case."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from ..clock import Clock, SystemClock
from ..models import (
    NIL_UUID,
    Email,
    EmailDirection,
    EmailStatus,
    TimelineActivity,
)
from ..persistence import EmailRepository, TimelineActivityRepository

logger = logging.getLogger(__name__)


class ReceiveEmailInput(BaseModel):
    from_email: str
    to_email: str
    cc_emails: Optional[list[str]] = None
    subject: str
    body_text: str
    body_html: Optional[str] = None
    received_at: Optional[datetime] = None
    person_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    opportunity_id: Optional[UUID] = None
    task_id: Optional[UUID] = None
    workspace_id: UUID = NIL_UUID


class ReceiveEmail:
    """Persist an inbound email and record it on the timeline."""

    def __init__(
        self,
        email_repo: EmailRepository,
        timeline_repo: TimelineActivityRepository,
        clock: Clock | None = None,
    ) -> None:
        self._email_repo = email_repo
        self._timeline_repo = timeline_repo
        self._clock = clock or SystemClock()

    async def execute(self, data: ReceiveEmailInput) -> Email:
        received_at = data.received_at or self._clock.now()
        email = Email(
            created_at=received_at,
            updated_at=received_at,
            direction=EmailDirection.INBOUND,
            status=EmailStatus.RECEIVED,
            from_email=data.from_email,
            to_email=data.to_email,
            cc_emails=data.cc_emails,
            subject=data.subject,
            body_text=data.body_text,
            body_html=data.body_html,
            person_id=data.person_id,
            company_id=data.company_id,
            opportunity_id=data.opportunity_id,
            task_id=data.task_id,
            workspace_id=data.workspace_id,
        )
        email.ensure_valid()

        email = await self._email_repo.create(email)
        logger.info(f"Received email {email.id} from {email.from_email}")

        activity = await self._timeline_repo.create(
            TimelineActivity(
                created_at=self._clock.now(),
                name=f"Email received from {email.from_email}",
                person_id=email.person_id,
                company_id=email.company_id,
                opportunity_id=email.opportunity_id,
                task_id=email.task_id,
                workspace_id=email.workspace_id,
            )
        )
        return await self._email_repo.update(
            email.model_copy(update={"timeline_activity_id": activity.id})
        )
