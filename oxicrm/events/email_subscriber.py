"""Notification emails triggered by opportunity and task events."""

from __future__ import annotations

import logging
from typing import Dict

from ..clock import Clock
from ..config import EmailConfig
from ..contracts import (
    TOPIC_OPPORTUNITY_CREATED,
    TOPIC_OPPORTUNITY_WON,
    TOPIC_TASK_ASSIGNED,
    DomainEvent,
)
from ..email import SendEmail, SendEmailInput
from ..messaging import EventBus
from .base import EventSubscriber, Handler, optional_str, require_str, require_uuid

logger = logging.getLogger(__name__)


class EmailEventSubscriber(EventSubscriber):
    def __init__(
        self,
        event_bus: EventBus,
        send_email: SendEmail,
        settings: EmailConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(event_bus, clock)
        self._send_email = send_email
        self._settings = settings or EmailConfig()

    def handlers(self) -> Dict[str, Handler]:
        return {
            TOPIC_OPPORTUNITY_CREATED: self.handle_opportunity_created,
            TOPIC_TASK_ASSIGNED: self.handle_task_assigned,
            TOPIC_OPPORTUNITY_WON: self.handle_opportunity_won,
        }

    async def handle_opportunity_created(self, event: DomainEvent) -> None:
        data = event.data()
        opportunity_id = require_uuid(data, "id", "opportunity")
        person_name = optional_str(data, "person_name", "Unknown")

        logger.info(f"Sending notification email for new opportunity: {opportunity_id}")
        await self._send_email.execute(
            SendEmailInput(
                from_email=self._settings.system_sender,
                to_email=self._settings.sales_inbox,
                subject=f"New Opportunity Created: {person_name}",
                body_text=(
                    "A new opportunity has been created.\n\n"
                    f"Opportunity ID: {opportunity_id}\n"
                    f"Contact: {person_name}\n"
                ),
                opportunity_id=opportunity_id,
            )
        )

    async def handle_task_assigned(self, event: DomainEvent) -> None:
        data = event.data()
        task_id = require_uuid(data, "id", "task")
        assignee_email = require_str(data, "assignee_email", "assignee email")
        task_title = optional_str(data, "title", "Untitled Task")

        logger.info(f"Sending task assignment email to: {assignee_email}")
        await self._send_email.execute(
            SendEmailInput(
                from_email=self._settings.system_sender,
                to_email=assignee_email,
                subject=f"Task Assigned: {task_title}",
                body_text=(
                    "You have been assigned a new task.\n\n"
                    f"Task: {task_title}\n\n"
                    "Please review and complete it."
                ),
                task_id=task_id,
            )
        )

    async def handle_opportunity_won(self, event: DomainEvent) -> None:
        data = event.data()
        opportunity_id = require_uuid(data, "id", "opportunity")
        person_email = require_str(data, "person_email", "person email")
        person_name = optional_str(data, "person_name", "Valued Customer")

        logger.info(f"Sending congratulations email for won opportunity: {opportunity_id}")
        await self._send_email.execute(
            SendEmailInput(
                from_email=self._settings.system_sender,
                to_email=person_email,
                subject="Congratulations! 🎉",
                body_text=(
                    f"Dear {person_name},\n\n"
                    "Congratulations on your successful partnership with us!\n\n"
                    "We're excited to work together.\n\n"
                    "Best regards,\nThe Team"
                ),
                opportunity_id=opportunity_id,
            )
        )
