"""Sales notification and timeline entry for newly captured leads."""

from __future__ import annotations

import logging
from typing import Dict

from pydantic import ValidationError as PydanticValidationError

from ..clock import Clock
from ..config import EmailConfig
from ..contracts import TOPIC_LEAD_CREATED, DomainEvent
from ..email import SendEmail, SendEmailInput
from ..errors import ValidationError
from ..messaging import EventBus
from ..models import Lead, TimelineActivity
from ..persistence import TimelineActivityRepository
from .base import EventSubscriber, Handler

logger = logging.getLogger(__name__)


class LeadEventSubscriber(EventSubscriber):
    topic_pattern = "lead.*"

    def __init__(
        self,
        event_bus: EventBus,
        send_email: SendEmail,
        timeline_repo: TimelineActivityRepository,
        settings: EmailConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(event_bus, clock)
        self._send_email = send_email
        self._timeline_repo = timeline_repo
        self._settings = settings or EmailConfig()

    def handlers(self) -> Dict[str, Handler]:
        return {TOPIC_LEAD_CREATED: self.handle_lead_created}

    def _render_body(self, lead: Lead) -> str:
        return (
            "New lead captured!\n\n"
            f"Name: {lead.full_name}\n"
            f"Email: {lead.email}\n"
            f"Company: {lead.company_name or 'N/A'}\n"
            f"Phone: {lead.phone or 'N/A'}\n"
            f"Job Title: {lead.job_title or 'N/A'}\n"
            f"Source: {lead.source.label}\n"
            f"Score: {lead.score}\n\n"
            f"View in CRM: {self._settings.crm_base_url.rstrip('/')}/leads/{lead.id}"
        )

    async def handle_lead_created(self, event: DomainEvent) -> None:
        try:
            lead = Lead.model_validate_json(event.payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Failed to parse lead: {e}") from e

        logger.info(f"New lead created: {lead.full_name} ({lead.email})")
        await self._send_email.execute(
            SendEmailInput(
                from_email=self._settings.system_sender,
                to_email=self._settings.sales_inbox,
                subject=f"New Lead: {lead.full_name} ({lead.source.label})",
                body_text=self._render_body(lead),
                workspace_id=lead.workspace_id,
            )
        )

        await self._timeline_repo.create(
            TimelineActivity(
                created_at=self._clock.now(),
                name=f"Lead captured via {lead.source.label}",
                workspace_member_id=lead.assigned_to_id,
                workspace_id=lead.workspace_id,
            )
        )
