"""Typed step settings and the step interpreter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..email import SendEmail, SendEmailInput
from ..errors import ValidationError
from ..models import NIL_UUID, WorkflowRun, WorkflowStepType, WorkflowVersionStep

logger = logging.getLogger(__name__)


class SendEmailSettings(BaseModel):
    """Settings of a ``send_email`` step.

    Unparseable optional fields (``template_id``, ``cc_emails``,
    ``bcc_emails``, ``body_html``) are dropped rather than failing the step;
    a non-string ``subject`` or ``body_text`` becomes empty.
    """

    model_config = ConfigDict(extra="ignore")

    from_email: str
    to_email: str
    subject: str = ""
    body_text: str = ""
    body_html: Optional[str] = None
    template_id: Optional[UUID] = None
    template_variables: Optional[Dict[str, Any]] = None
    cc_emails: Optional[list[str]] = None
    bcc_emails: Optional[list[str]] = None

    @field_validator("subject", "body_text", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, str) else ""

    @field_validator("body_html", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Any:
        return value if isinstance(value, str) else None

    @field_validator("template_id", mode="before")
    @classmethod
    def _lenient_uuid(cls, value: Any) -> Any:
        if value is None or isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError:
            logger.warning(f"Ignoring invalid template_id in step settings: {value}")
            return None

    @field_validator("cc_emails", "bcc_emails", mode="before")
    @classmethod
    def _lenient_address_list(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return value
        logger.warning(f"Ignoring invalid address list in step settings: {value}")
        return None

    @field_validator("template_variables", mode="before")
    @classmethod
    def _object_only(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @classmethod
    def parse(cls, settings: Dict[str, Any]) -> "SendEmailSettings":
        for field in ("from_email", "to_email"):
            if not isinstance(settings.get(field), str):
                raise ValidationError(f"Missing {field} in settings")
        try:
            return cls.model_validate(settings)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid send_email settings: {e}") from e


@dataclass(frozen=True)
class StepContext:
    """What a step knows about the run it belongs to."""

    run: WorkflowRun
    workspace_id: UUID = NIL_UUID
    workflow_id: Optional[UUID] = None


StepHandler = Callable[[WorkflowVersionStep, StepContext], Awaitable[Optional[Dict[str, Any]]]]


class StepInterpreter:
    """Executes one step according to its type.

    Every ``WorkflowStepType`` member has an entry in the dispatch table;
    kinds without behaviour yet are accepted and do nothing.
    """

    def __init__(self, send_email: SendEmail) -> None:
        self._send_email = send_email
        self._handlers: Dict[WorkflowStepType, StepHandler] = {
            WorkflowStepType.SEND_EMAIL: self._execute_send_email,
            WorkflowStepType.CREATE_RECORD: self._not_implemented,
            WorkflowStepType.UPDATE_RECORD: self._not_implemented,
            WorkflowStepType.IF_ELSE: self._not_implemented,
            WorkflowStepType.FORM: self._not_implemented,
            WorkflowStepType.CODE: self._not_implemented,
        }
        missing = set(WorkflowStepType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No step handler for: {sorted(m.value for m in missing)}")

    async def execute(
        self, step: WorkflowVersionStep, context: StepContext
    ) -> Optional[Dict[str, Any]]:
        """Run ``step`` and return its output, raising ``DomainError`` on failure."""
        return await self._handlers[step.step_type](step, context)

    async def _not_implemented(
        self, step: WorkflowVersionStep, context: StepContext
    ) -> None:
        logger.warning(f"{step.step_type.value} step not implemented yet; skipping {step.id}")
        return None

    async def _execute_send_email(
        self, step: WorkflowVersionStep, context: StepContext
    ) -> Dict[str, Any]:
        settings = SendEmailSettings.parse(step.settings)
        email = await self._send_email.execute(
            SendEmailInput(
                from_email=settings.from_email,
                to_email=settings.to_email,
                cc_emails=settings.cc_emails,
                bcc_emails=settings.bcc_emails,
                subject=settings.subject,
                body_text=settings.body_text,
                body_html=settings.body_html,
                template_id=settings.template_id,
                template_variables=settings.template_variables,
                workflow_id=context.workflow_id,
                workflow_run_id=context.run.id,
                workspace_id=context.workspace_id,
            )
        )
        return {"email_id": str(email.id), "email_status": email.status.value}
