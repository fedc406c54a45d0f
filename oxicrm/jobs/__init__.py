"""Job queue, periodic scheduler and the email job worker."""

from __future__ import annotations

from typing import Optional

from ..config import OxiCrmConfig, load_config
from .queue import InMemoryJobQueue, JobQueue
from .scheduler import PeriodicJobScheduler
from .worker import BulkEmailPayload, EmailJobWorker, WorkerStats


def get_job_queue(config: Optional[OxiCrmConfig] = None) -> JobQueue:
    """Factory function to get the configured job queue."""

    config = config or load_config()
    return InMemoryJobQueue(capacity=config.jobs.queue_capacity)


__all__ = [
    "JobQueue",
    "InMemoryJobQueue",
    "PeriodicJobScheduler",
    "EmailJobWorker",
    "WorkerStats",
    "BulkEmailPayload",
    "get_job_queue",
]
