"""Bounded FIFO hand-off of jobs to the background worker."""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import Optional

from ..contracts import Job
from ..errors import InfrastructureError, JobQueueFullError, SubscriptionClosed

logger = logging.getLogger(__name__)

_CLOSED = object()


class JobQueue(metaclass=abc.ABCMeta):
    """Abstract job queue consumed by a single worker."""

    @abc.abstractmethod
    async def enqueue(self, job: Job, timeout: Optional[float] = None) -> None:
        """Add a job, waiting for free space when the queue is full.

        Raises:
            JobQueueFullError: No space became available within ``timeout``.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self) -> Job:
        """Return the next job in FIFO order.

        Raises:
            SubscriptionClosed: The queue was closed and fully drained.
        """
        raise NotImplementedError

    async def close(self) -> None:
        pass


class InMemoryJobQueue(JobQueue):
    """``asyncio.Queue`` backed job queue for a single process."""

    def __init__(self, capacity: int = 100) -> None:
        self.capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def _check_open(self, job: Job) -> None:
        if self._closed:
            raise InfrastructureError(f"Cannot enqueue '{job.name}': queue is closed")

    async def enqueue(self, job: Job, timeout: Optional[float] = None) -> None:
        self._check_open(job)
        try:
            await asyncio.wait_for(self._queue.put(job), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise JobQueueFullError(
                f"Job queue full ({self.capacity}); could not enqueue '{job.name}'"
            ) from e
        logger.debug(f"Enqueued job {job.name}")

    def enqueue_nowait(self, job: Job) -> None:
        self._check_open(job)
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull as e:
            raise JobQueueFullError(
                f"Job queue full ({self.capacity}); could not enqueue '{job.name}'"
            ) from e

    async def get(self) -> Job:
        if self._closed and self._queue.empty():
            raise SubscriptionClosed("Job queue is closed")
        item = await self._queue.get()
        if item is _CLOSED:
            raise SubscriptionClosed("Job queue is closed")
        return item

    async def close(self) -> None:
        """Stop accepting jobs; the consumer drains what is queued then stops."""
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # consumer sees the closed flag once it drains the buffer
            pass
