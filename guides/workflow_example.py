"""Example executing a two step workflow version with the in-memory backend."""

import asyncio
import uuid

from oxicrm import AutomationRuntime
from oxicrm.models import WorkflowStepType, WorkflowVersionStep


async def main():
    runtime = AutomationRuntime.from_config()
    version_id = uuid.uuid4()
    steps = runtime.repositories.workflow_steps

    await steps.create(
        WorkflowVersionStep(
            workflow_version_id=version_id,
            step_type=WorkflowStepType.SEND_EMAIL,
            position=0,
            settings={
                "from_email": "noreply@oxicrm.com",
                "to_email": "ada@example.com",
                "subject": "Welcome aboard",
                "body_text": "Thanks for signing up.",
            },
        )
    )
    await steps.create(
        WorkflowVersionStep(
            workflow_version_id=version_id,
            step_type=WorkflowStepType.IF_ELSE,
            position=1,
        )
    )

    run = await runtime.executor.execute_workflow(version_id)
    print(run.status.value, run.output)


if __name__ == "__main__":
    asyncio.run(main())
