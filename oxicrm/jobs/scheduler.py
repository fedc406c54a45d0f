"""Periodic enqueueing of recurring jobs."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..contracts import Job
from ..errors import DomainError
from .queue import JobQueue

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PeriodicJobScheduler:
    """Enqueue ``job`` every ``interval`` seconds.

    ``sleep`` is injectable so tests can drive virtual time instead of
    waiting on a real timer.
    """

    def __init__(
        self,
        queue: JobQueue,
        job: Job,
        interval: float = 60.0,
        sleep: Sleep = asyncio.sleep,
        enqueue_timeout: Optional[float] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._queue = queue
        self.job = job
        self.interval = interval
        self._sleep = sleep
        self._enqueue_timeout = enqueue_timeout
        self.ticks = 0
        self.failures = 0

    async def tick(self) -> bool:
        """Enqueue one copy of the job. Returns ``False`` if enqueueing failed."""
        self.ticks += 1
        try:
            await self._queue.enqueue(self.job, timeout=self._enqueue_timeout)
        except DomainError as e:
            self.failures += 1
            logger.error(f"Failed to enqueue scheduled job {self.job.name}: {e}")
            return False
        logger.debug(f"Scheduled job {self.job.name} enqueued (tick {self.ticks})")
        return True

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Sleep then tick, forever or until ``max_ticks`` ticks have run."""
        logger.info(
            f"Scheduler started for {self.job.name} every {self.interval}s"
        )
        count = 0
        while max_ticks is None or count < max_ticks:
            await self._sleep(self.interval)
            await self.tick()
            count += 1
