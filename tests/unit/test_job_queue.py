"""Job queue and periodic scheduler tests."""

import asyncio

import pytest

from oxicrm.contracts import JOB_SEND_PENDING_EMAILS, Job
from oxicrm.errors import InfrastructureError, JobQueueFullError, SubscriptionClosed
from oxicrm.jobs import InMemoryJobQueue, PeriodicJobScheduler


@pytest.mark.asyncio
async def test_queue_is_fifo():
    queue = InMemoryJobQueue()
    for name in ("a", "b", "c"):
        await queue.enqueue(Job(name=name))
    assert [(await queue.get()).name for _ in range(3)] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_full_queue_applies_backpressure():
    queue = InMemoryJobQueue(capacity=1)
    await queue.enqueue(Job(name="first"))

    with pytest.raises(JobQueueFullError):
        queue.enqueue_nowait(Job(name="second"))
    with pytest.raises(JobQueueFullError):
        await queue.enqueue(Job(name="second"), timeout=0.01)

    blocked = asyncio.create_task(queue.enqueue(Job(name="second")))
    await asyncio.sleep(0.01)
    assert not blocked.done()

    assert (await queue.get()).name == "first"
    await asyncio.wait_for(blocked, timeout=1)
    assert (await queue.get()).name == "second"


@pytest.mark.asyncio
async def test_closed_queue_drains_then_stops():
    queue = InMemoryJobQueue()
    await queue.enqueue(Job(name="left-over"))
    await queue.close()

    with pytest.raises(InfrastructureError):
        await queue.enqueue(Job(name="late"))

    assert (await queue.get()).name == "left-over"
    with pytest.raises(SubscriptionClosed):
        await queue.get()


def test_job_payload_helpers():
    job = Job.from_data("send_bulk_email", {"email_ids": ["x"]})
    assert job.data() == {"email_ids": ["x"]}
    assert Job(name="send_pending_emails").data() == {}


@pytest.mark.asyncio
async def test_scheduler_enqueues_on_every_virtual_tick():
    queue = InMemoryJobQueue()
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    scheduler = PeriodicJobScheduler(
        queue, Job.from_data(JOB_SEND_PENDING_EMAILS), interval=60.0, sleep=fake_sleep
    )
    await scheduler.run(max_ticks=3)

    assert sleeps == [60.0, 60.0, 60.0]
    assert queue.qsize() == 3
    assert (await queue.get()).name == JOB_SEND_PENDING_EMAILS


@pytest.mark.asyncio
async def test_scheduler_counts_enqueue_failures():
    queue = InMemoryJobQueue(capacity=1)
    scheduler = PeriodicJobScheduler(
        queue, Job(name=JOB_SEND_PENDING_EMAILS), enqueue_timeout=0.01
    )
    assert await scheduler.tick() is True
    assert await scheduler.tick() is False
    assert scheduler.ticks == 2
    assert scheduler.failures == 1


def test_scheduler_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PeriodicJobScheduler(InMemoryJobQueue(), Job(name="x"), interval=0)
