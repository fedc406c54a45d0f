"""Entities handled by the automation pipeline.

All entities are immutable. Each pipeline stage produces a new version with
``model_copy(update=...)`` which is then persisted.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ValidationError

NIL_UUID = uuid.UUID(int=0)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmailDirection(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"


class EmailStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    RECEIVED = "received"


class WorkflowRunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            WorkflowRunStatus.COMPLETED,
            WorkflowRunStatus.FAILED,
            WorkflowRunStatus.CANCELLED,
        )


class WorkflowStepType(str, Enum):
    SEND_EMAIL = "send_email"
    CREATE_RECORD = "create_record"
    UPDATE_RECORD = "update_record"
    IF_ELSE = "if_else"
    FORM = "form"
    CODE = "code"


class LeadSource(str, Enum):
    WEB_FORM = "web_form"
    MANUAL_ENTRY = "manual_entry"
    EMAIL = "email"
    REFERRAL = "referral"

    @property
    def label(self) -> str:
        return {
            LeadSource.WEB_FORM: "Web Form",
            LeadSource.MANUAL_ENTRY: "Manual Entry",
            LeadSource.EMAIL: "Email",
            LeadSource.REFERRAL: "Referral",
        }[self]


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    UNQUALIFIED = "unqualified"
    CONVERTED = "converted"


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True)


class Email(_Entity):
    """A single outbound or inbound email and its delivery state."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    direction: EmailDirection
    status: EmailStatus
    from_email: str
    to_email: str
    cc_emails: Optional[list[str]] = None
    bcc_emails: Optional[list[str]] = None
    subject: str
    body_text: str
    body_html: Optional[str] = None
    sent_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    email_template_id: Optional[uuid.UUID] = None
    timeline_activity_id: Optional[uuid.UUID] = None
    person_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    opportunity_id: Optional[uuid.UUID] = None
    task_id: Optional[uuid.UUID] = None
    workflow_id: Optional[uuid.UUID] = None
    workflow_run_id: Optional[uuid.UUID] = None
    metadata: Optional[dict[str, Any]] = None
    workspace_id: uuid.UUID = NIL_UUID

    def ensure_valid(self) -> None:
        """Raise ``ValidationError`` if the email cannot be persisted."""
        if not self.subject.strip():
            raise ValidationError("Email subject cannot be empty")
        if not self.body_text.strip():
            raise ValidationError("Email body cannot be empty")
        if not self.to_email.strip():
            raise ValidationError("Recipient cannot be empty")
        addresses = [self.from_email, self.to_email]
        addresses += self.cc_emails or []
        addresses += self.bcc_emails or []
        for address in addresses:
            if "@" not in address:
                raise ValidationError(f"Invalid email: {address}")


class EmailTemplate(_Entity):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    name: str
    subject: str
    body_text: str
    body_html: Optional[str] = None
    category: str = "general"
    workspace_id: uuid.UUID = NIL_UUID


class WorkflowVersionStep(_Entity):
    """One automation step; ``settings`` is interpreted per ``step_type``."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    workflow_version_id: uuid.UUID
    step_type: WorkflowStepType
    settings: dict[str, Any] = Field(default_factory=dict)
    position: int = 0


class WorkflowRun(_Entity):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    workflow_version_id: uuid.UUID
    status: WorkflowRunStatus = WorkflowRunStatus.RUNNING
    output: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class TimelineActivity(_Entity):
    """Append-only audit entry linking a description to CRM records."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    name: str
    workspace_member_id: Optional[uuid.UUID] = None
    person_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    opportunity_id: Optional[uuid.UUID] = None
    task_id: Optional[uuid.UUID] = None
    note_id: Optional[uuid.UUID] = None
    calendar_event_id: Optional[uuid.UUID] = None
    workflow_id: Optional[uuid.UUID] = None
    workspace_id: uuid.UUID = NIL_UUID


class Lead(_Entity):
    """Lead snapshot carried in the payload of ``lead.created`` events."""

    id: uuid.UUID
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    source: LeadSource = LeadSource.MANUAL_ENTRY
    status: LeadStatus = LeadStatus.NEW
    score: int = 0
    notes: Optional[str] = None
    assigned_to_id: Optional[uuid.UUID] = None
    workspace_id: uuid.UUID = NIL_UUID

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
