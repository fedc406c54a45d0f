"""Example showing domain events and jobs flowing through the automation runtime."""

import asyncio
import logging
import uuid

from oxicrm import AutomationRuntime, DomainEvent, Job
from oxicrm.contracts import JOB_SEND_PENDING_EMAILS


async def main():
    logging.basicConfig(level=logging.INFO)
    runtime = AutomationRuntime.from_config()
    await runtime.start()

    await runtime.publish(
        DomainEvent.from_data(
            "opportunity.created",
            {"id": str(uuid.uuid4()), "person_name": "Ada Lovelace"},
        )
    )
    await runtime.enqueue(Job.from_data(JOB_SEND_PENDING_EMAILS))

    # Give the subscriber and worker a moment to drain
    await asyncio.sleep(0.5)
    await runtime.stop()

    for email in await runtime.repositories.emails.find_all():
        print(email.id, email.status.value, email.subject)


if __name__ == "__main__":
    asyncio.run(main())
