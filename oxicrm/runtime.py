"""Process-level wiring of the automation pipeline."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from .clock import Clock, SystemClock
from .config import OxiCrmConfig, load_config
from .contracts import JOB_SEND_PENDING_EMAILS, DomainEvent, Job
from .email import (
    EmailProvider,
    ReceiveEmail,
    SendEmail,
    TemplateEngine,
    get_email_provider,
)
from .events import EmailEventSubscriber, LeadEventSubscriber
from .jobs import EmailJobWorker, InMemoryJobQueue, JobQueue, PeriodicJobScheduler
from .messaging import EventBus, InMemoryEventBus
from .persistence import Repositories, get_repositories
from .workflow import WorkflowExecutor

logger = logging.getLogger(__name__)


class AutomationRuntime:
    """Owns the bus, queue, subscribers, worker and scheduler of one process."""

    def __init__(
        self,
        config: OxiCrmConfig,
        repositories: Repositories,
        event_bus: EventBus,
        job_queue: JobQueue,
        provider: EmailProvider,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.repositories = repositories
        self.event_bus = event_bus
        self.job_queue = job_queue
        self.provider = provider
        self.clock = clock or SystemClock()

        timeout = config.email.provider_timeout
        self.send_email = SendEmail(
            repositories.emails,
            repositories.templates,
            repositories.timeline,
            provider,
            TemplateEngine(),
            clock=self.clock,
            provider_timeout=timeout,
        )
        self.receive_email = ReceiveEmail(
            repositories.emails, repositories.timeline, clock=self.clock
        )
        self.email_subscriber = EmailEventSubscriber(
            event_bus, self.send_email, settings=config.email, clock=self.clock
        )
        self.lead_subscriber = LeadEventSubscriber(
            event_bus,
            self.send_email,
            repositories.timeline,
            settings=config.email,
            clock=self.clock,
        )
        self.worker = EmailJobWorker(
            repositories.emails,
            provider,
            job_queue,
            clock=self.clock,
            provider_timeout=timeout,
        )
        self.scheduler = PeriodicJobScheduler(
            job_queue,
            Job.from_data(JOB_SEND_PENDING_EMAILS),
            interval=config.jobs.pending_email_interval,
        )
        self.executor = WorkflowExecutor(
            repositories.workflow_runs,
            repositories.workflow_steps,
            self.send_email,
            clock=self.clock,
        )
        self._worker_task: Optional[asyncio.Task] = None
        self._scheduler_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls,
        config: Optional[OxiCrmConfig] = None,
        repositories: Optional[Repositories] = None,
        provider: Optional[EmailProvider] = None,
        clock: Clock | None = None,
    ) -> "AutomationRuntime":
        # without an explicit config the process-wide repositories are reused
        repositories = repositories or get_repositories(config=config)
        config = config or load_config()
        return cls(
            config=config,
            repositories=repositories,
            event_bus=InMemoryEventBus(capacity=config.event_bus.capacity),
            job_queue=InMemoryJobQueue(capacity=config.jobs.queue_capacity),
            provider=provider or get_email_provider(config=config),
            clock=clock,
        )

    @property
    def running(self) -> bool:
        return self._worker_task is not None

    async def start(self) -> None:
        if self.running:
            return
        await self.email_subscriber.start()
        await self.lead_subscriber.start()
        self._worker_task = asyncio.create_task(self.worker.start(), name="email-worker")
        self._scheduler_task = asyncio.create_task(
            self.scheduler.run(), name="pending-email-scheduler"
        )
        logger.info("Automation runtime started")

    async def stop(self) -> None:
        if not self.running:
            return
        if self._scheduler_task is not None:
            self._scheduler_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._scheduler_task
            self._scheduler_task = None
        await self.email_subscriber.stop()
        await self.lead_subscriber.stop()
        await self.job_queue.close()
        await self._worker_task
        self._worker_task = None
        await self.event_bus.close()
        logger.info("Automation runtime stopped")

    async def run(self, lifespan: Optional[float] = None) -> None:
        """Start, wait ``lifespan`` seconds (forever when ``None``), then stop."""
        await self.start()
        try:
            if lifespan is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(lifespan)
        finally:
            await self.stop()

    async def publish(self, event: DomainEvent) -> None:
        await self.event_bus.publish(event)

    async def enqueue(self, job: Job, timeout: Optional[float] = None) -> None:
        await self.job_queue.enqueue(job, timeout=timeout)
