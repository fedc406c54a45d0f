"""Message contracts exchanged over the event bus and the job queue."""

from __future__ import annotations

import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

from .errors import ValidationError

TOPIC_OPPORTUNITY_CREATED = "opportunity.created"
TOPIC_OPPORTUNITY_WON = "opportunity.won"
TOPIC_TASK_ASSIGNED = "task.assigned"
TOPIC_LEAD_CREATED = "lead.created"

JOB_SEND_PENDING_EMAILS = "send_pending_emails"
JOB_SEND_BULK_EMAIL = "send_bulk_email"


def _decode(raw: str, what: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw) if raw else {}
    except json.JSONDecodeError as e:
        raise ValidationError(f"Failed to parse {what} payload: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a JSON object as {what} payload")
    return data


class DomainEvent(BaseModel):
    """Notification published after a business operation completes.

    ``payload`` is an opaque JSON document agreed between the producer and
    its consumers.
    """

    model_config = ConfigDict(frozen=True)

    topic: str
    payload: str = "{}"

    @classmethod
    def from_data(cls, topic: str, data: Dict[str, Any]) -> "DomainEvent":
        return cls(topic=topic, payload=json.dumps(data, default=str))

    def data(self) -> Dict[str, Any]:
        """Decode the payload, raising ``ValidationError`` on malformed JSON."""
        return _decode(self.payload, f"'{self.topic}' event")


class Job(BaseModel):
    """Named unit of deferred work handed to the background worker."""

    model_config = ConfigDict(frozen=True)

    name: str
    payload: str = "{}"

    @classmethod
    def from_data(cls, name: str, data: Dict[str, Any] | None = None) -> "Job":
        return cls(name=name, payload=json.dumps(data or {}, default=str))

    def data(self) -> Dict[str, Any]:
        return _decode(self.payload, f"'{self.name}' job")
