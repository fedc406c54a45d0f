"""Email providers: the outbound hand-off point of the pipeline."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Iterable, Optional, Protocol

import httpx
from pydantic import BaseModel

from ..errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class SendEmailRequest(BaseModel):
    """Rendered content handed to a provider."""

    from_email: str
    to_email: str
    cc: Optional[list[str]] = None
    bcc: Optional[list[str]] = None
    subject: str
    body_text: str
    body_html: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class SendEmailResponse(BaseModel):
    message_id: str
    status: str = "sent"
    metadata: Optional[dict[str, Any]] = None


class EmailProvider(Protocol):
    """Protocol for outbound email backends."""

    async def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        """Hand the message off.

        Raises:
            EmailDeliveryError: The provider rejected or could not accept it.
        """

    async def verify_configuration(self) -> bool:
        """Return ``True`` when the provider is usable."""


class MockEmailProvider:
    """Stores sent emails in memory instead of actually sending them.

    Recipients listed in ``fail_for`` are rejected with ``EmailDeliveryError``.
    """

    def __init__(self, fail_for: Iterable[str] = ()) -> None:
        self.sent_emails: list[SendEmailRequest] = []
        self.fail_for = set(fail_for)
        self._lock = asyncio.Lock()

    async def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        if request.to_email in self.fail_for:
            raise EmailDeliveryError(f"Mailbox unavailable: {request.to_email}")
        async with self._lock:
            self.sent_emails.append(request)
        logger.info(
            f"MockEmailProvider: Sending email to {request.to_email} - {request.subject}"
        )
        return SendEmailResponse(message_id=str(uuid.uuid4()), status="sent")

    async def verify_configuration(self) -> bool:
        return True

    async def get_sent_emails(self) -> list[SendEmailRequest]:
        async with self._lock:
            return list(self.sent_emails)

    async def clear_sent_emails(self) -> None:
        async with self._lock:
            self.sent_emails.clear()


class HttpEmailProvider:
    """Delivers email through a JSON HTTP API (``POST {base_url}/emails``)."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, client: httpx.AsyncClient, body: dict) -> httpx.Response:
        return await client.post(
            f"{self.base_url}/emails", json=body, headers=self._headers()
        )

    async def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        body = {
            "from": request.from_email,
            "to": [request.to_email],
            "cc": request.cc or [],
            "bcc": request.bcc or [],
            "subject": request.subject,
            "text": request.body_text,
        }
        if request.body_html is not None:
            body["html"] = request.body_html

        try:
            if self._client is not None:
                response = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, body)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Email provider request failed: {e}") from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Email provider returned {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        message_id = str(data.get("id") or uuid.uuid4())
        return SendEmailResponse(
            message_id=message_id,
            status=str(data.get("status", "sent")),
            metadata={"provider_response": data} if data else None,
        )

    async def verify_configuration(self) -> bool:
        return bool(self.base_url and self.api_key)
