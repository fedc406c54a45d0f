import uuid

import pytest

from oxicrm.errors import InvalidStateError, NotFoundError
from oxicrm.models import (
    Email,
    EmailDirection,
    EmailStatus,
    EmailTemplate,
    TimelineActivity,
    WorkflowRun,
    WorkflowRunStatus,
    WorkflowStepType,
    WorkflowVersionStep,
)
from oxicrm.persistence import Repositories, SQLiteStore, get_repositories


def _email(status=EmailStatus.PENDING):
    return Email(
        direction=EmailDirection.OUTBOUND,
        status=status,
        from_email="noreply@oxicrm.com",
        to_email="ann@example.com",
        subject="Hi",
        body_text="Hello",
    )


@pytest.fixture(params=["memory", "sqlite"])
def repositories(request, tmp_path):
    if request.param == "memory":
        return Repositories.in_memory()
    return Repositories.sqlite(SQLiteStore(tmp_path / "crm.db"))


@pytest.mark.asyncio
async def test_email_crud_and_pending_lookup(repositories):
    pending = await repositories.emails.create(_email())
    await repositories.emails.create(_email(EmailStatus.SENT))

    assert [e.id for e in await repositories.emails.find_pending()] == [pending.id]

    sent = pending.model_copy(update={"status": EmailStatus.SENT})
    await repositories.emails.update(sent)
    assert await repositories.emails.find_pending() == []
    stored = await repositories.emails.find_by_id(pending.id)
    assert stored.status == EmailStatus.SENT
    assert len(await repositories.emails.find_all()) == 2


@pytest.mark.asyncio
async def test_update_of_unknown_rows_raises(repositories):
    with pytest.raises(NotFoundError):
        await repositories.emails.update(_email())
    with pytest.raises(NotFoundError):
        await repositories.workflow_runs.update(
            WorkflowRun(workflow_version_id=uuid.uuid4())
        )


@pytest.mark.asyncio
async def test_template_names_unique_per_workspace(repositories):
    workspace = uuid.uuid4()
    template = EmailTemplate(
        name="welcome", subject="Hi {{name}}", body_text="Welcome", workspace_id=workspace
    )
    await repositories.templates.create(template)
    await repositories.templates.create(
        EmailTemplate(name="welcome", subject="s", body_text="b")
    )

    with pytest.raises(InvalidStateError):
        await repositories.templates.create(
            EmailTemplate(name="welcome", subject="s", body_text="b", workspace_id=workspace)
        )

    found = await repositories.templates.find_by_name("welcome", workspace)
    assert found.id == template.id
    assert (await repositories.templates.find_by_id(template.id)).subject == "Hi {{name}}"


@pytest.mark.asyncio
async def test_runs_timeline_and_steps(repositories):
    version_id = uuid.uuid4()
    run = await repositories.workflow_runs.create(WorkflowRun(workflow_version_id=version_id))
    await repositories.workflow_runs.update(
        run.model_copy(update={"status": WorkflowRunStatus.COMPLETED})
    )
    stored = await repositories.workflow_runs.find_by_id(run.id)
    assert stored.status == WorkflowRunStatus.COMPLETED

    for position in (2, 1):
        await repositories.workflow_steps.create(
            WorkflowVersionStep(
                workflow_version_id=version_id,
                step_type=WorkflowStepType.FORM,
                position=position,
            )
        )
    steps = await repositories.workflow_steps.find_by_version_id(version_id)
    assert [s.position for s in steps] == [2, 1]
    assert await repositories.workflow_steps.find_by_version_id(uuid.uuid4()) == []

    await repositories.timeline.create(TimelineActivity(name="first"))
    await repositories.timeline.create(TimelineActivity(name="second"))
    assert [a.name for a in await repositories.timeline.find_all()] == ["first", "second"]


def test_get_repositories_selects_backend(tmp_path):
    repos = get_repositories(database_url=f"sqlite://{tmp_path / 'x.db'}")
    assert type(repos.emails).__name__ == "SQLiteEmailRepository"

    with pytest.raises(ValueError):
        get_repositories(database_url="mysql://nope")
