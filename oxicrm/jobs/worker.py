"""Background worker re-driving emails through the provider."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..clock import Clock, SystemClock
from ..contracts import JOB_SEND_BULK_EMAIL, JOB_SEND_PENDING_EMAILS, Job
from ..email.delivery import deliver
from ..email.provider import EmailProvider
from ..errors import SubscriptionClosed, ValidationError
from ..models import Email, EmailDirection, EmailStatus
from ..persistence import EmailRepository
from .queue import JobQueue

logger = logging.getLogger(__name__)


class BulkEmailPayload(BaseModel):
    email_ids: list[UUID]


class WorkerStats(BaseModel):
    """Counters exposed for observability of the job loop."""

    processed: int = 0
    failed: int = 0
    ignored: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None


class EmailJobWorker:
    """Consumes the job queue one job at a time.

    ``send_pending_emails`` re-sends every pending email; ``send_bulk_email``
    re-sends the emails listed in its payload. Errors are logged and
    counted; the loop keeps consuming.
    """

    def __init__(
        self,
        email_repo: EmailRepository,
        provider: EmailProvider,
        queue: JobQueue,
        clock: Clock | None = None,
        provider_timeout: float | None = None,
    ) -> None:
        self._email_repo = email_repo
        self._provider = provider
        self._queue = queue
        self._clock = clock or SystemClock()
        self._provider_timeout = provider_timeout
        self.stats = WorkerStats()
        self._handlers = {
            JOB_SEND_PENDING_EMAILS: self.process_pending_emails,
            JOB_SEND_BULK_EMAIL: self.process_bulk_email_job,
        }

    async def start(self, lifespan: Optional[float] = None) -> None:
        """Consume jobs until the queue closes or ``lifespan`` seconds pass."""
        logger.info("EmailJobWorker started")
        loop = asyncio.get_running_loop()
        deadline = loop.time() + lifespan if lifespan else None

        while True:
            timeout = None
            if deadline is not None:
                timeout = deadline - loop.time()
                if timeout <= 0:
                    break
            try:
                job = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                break
            except SubscriptionClosed:
                logger.warning("EmailJobWorker queue closed")
                break
            await self.process(job)

        logger.info("EmailJobWorker stopped")

    async def process(self, job: Job) -> None:
        """Run a single job, recording failures instead of raising them."""
        logger.debug(f"EmailJobWorker processing job: {job.name}")
        handler = self._handlers.get(job.name)
        if handler is None:
            self.stats.ignored += 1
            logger.warning(f"Unknown job type: {job.name}")
            return
        try:
            await handler(job)
        except Exception as e:
            self.stats.failed += 1
            self.stats.last_error = f"{job.name}: {e}"
            self.stats.last_error_at = self._clock.now()
            logger.error(f"Error processing job {job.name}: {e}")
            return
        self.stats.processed += 1

    async def _resend(self, email: Email) -> Email:
        updated = await deliver(
            email, self._provider, self._clock, self._provider_timeout
        )
        if updated.status == EmailStatus.SENT:
            self.stats.emails_sent += 1
        else:
            self.stats.emails_failed += 1
        return await self._email_repo.update(updated)

    async def process_pending_emails(self, job: Job | None = None) -> None:
        pending = await self._email_repo.find_pending()
        if not pending:
            logger.debug("No pending emails to process")
            return

        logger.info(f"Processing {len(pending)} pending emails")
        for email in pending:
            await self._resend(email)

    async def process_bulk_email_job(self, job: Job) -> None:
        try:
            payload = BulkEmailPayload.model_validate(job.data())
        except PydanticValidationError as e:
            raise ValidationError(f"Missing or invalid email_ids in payload: {e}") from e

        logger.info(f"Processing bulk email job with {len(payload.email_ids)} emails")
        for email_id in payload.email_ids:
            email = await self._email_repo.find_by_id(email_id)
            if email is None:
                logger.error(f"Bulk email {email_id} not found; skipping")
                continue
            if email.direction != EmailDirection.OUTBOUND:
                logger.warning(f"Bulk email {email_id} is inbound; skipping")
                continue
            await self._resend(email)
