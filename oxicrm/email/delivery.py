"""Provider hand-off shared by the send pipeline and the job worker."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..clock import Clock
from ..models import Email, EmailStatus
from .provider import EmailProvider, SendEmailRequest

logger = logging.getLogger(__name__)


def build_request(email: Email) -> SendEmailRequest:
    return SendEmailRequest(
        from_email=email.from_email,
        to_email=email.to_email,
        cc=email.cc_emails,
        bcc=email.bcc_emails,
        subject=email.subject,
        body_text=email.body_text,
        body_html=email.body_html,
    )


async def deliver(
    email: Email,
    provider: EmailProvider,
    clock: Clock,
    timeout: Optional[float] = None,
) -> Email:
    """Attempt delivery and return the resulting version of ``email``.

    Provider failures and timeouts are not raised: they produce a ``FAILED``
    email carrying the error message. The caller persists the result.
    """
    try:
        response = await asyncio.wait_for(
            provider.send_email(build_request(email)), timeout=timeout
        )
    except asyncio.TimeoutError:
        error = f"Email provider timed out after {timeout}s"
    except Exception as e:
        error = str(e) or e.__class__.__name__
    else:
        now = clock.now()
        metadata = dict(email.metadata or {})
        metadata.update(response.metadata or {})
        metadata["message_id"] = response.message_id
        logger.info(f"Email {email.id} sent successfully: {response.message_id}")
        return email.model_copy(
            update={
                "status": EmailStatus.SENT,
                "sent_at": now,
                "failed_at": None,
                "error_message": None,
                "metadata": metadata,
                "updated_at": now,
            }
        )

    now = clock.now()
    logger.error(f"Failed to send email {email.id}: {error}")
    return email.model_copy(
        update={
            "status": EmailStatus.FAILED,
            "failed_at": now,
            "sent_at": None,
            "error_message": error,
            "updated_at": now,
        }
    )
