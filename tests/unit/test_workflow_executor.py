import uuid

import pytest

from oxicrm.models import (
    EmailTemplate,
    WorkflowRunStatus,
    WorkflowStepType,
    WorkflowVersionStep,
)
from oxicrm.workflow import WorkflowExecutor


@pytest.fixture
def executor(repos, send_email, clock):
    return WorkflowExecutor(
        repos.workflow_runs, repos.workflow_steps, send_email, clock=clock
    )


@pytest.fixture
def version_id():
    return uuid.uuid4()


async def _add_step(repos, version_id, position, step_type=WorkflowStepType.SEND_EMAIL, **settings):
    return await repos.workflow_steps.create(
        WorkflowVersionStep(
            workflow_version_id=version_id,
            step_type=step_type,
            settings=settings,
            position=position,
        )
    )


def _email_settings(subject, to="ann@example.com"):
    return dict(
        from_email="noreply@oxicrm.com",
        to_email=to,
        subject=subject,
        body_text=f"Body of {subject}",
    )


@pytest.mark.asyncio
async def test_steps_run_in_position_order(executor, repos, provider, version_id):
    await _add_step(repos, version_id, 2, **_email_settings("third"))
    await _add_step(repos, version_id, 0, **_email_settings("first"))
    await _add_step(repos, version_id, 1, **_email_settings("second"))

    workflow_id = uuid.uuid4()
    run = await executor.execute_workflow(version_id, workflow_id=workflow_id)

    assert run.status == WorkflowRunStatus.COMPLETED
    assert run.error is None
    assert [r.subject for r in provider.sent_emails] == ["first", "second", "third"]
    assert run.output["steps_executed"] == 3
    assert len(run.output["email_ids"]) == 3

    emails = await repos.emails.find_all()
    assert {e.workflow_run_id for e in emails} == {run.id}
    assert {e.workflow_id for e in emails} == {workflow_id}
    assert await repos.workflow_runs.find_by_id(run.id) == run


@pytest.mark.asyncio
async def test_equal_positions_keep_insertion_order(executor, repos, provider, version_id):
    await _add_step(repos, version_id, 1, **_email_settings("a"))
    await _add_step(repos, version_id, 1, **_email_settings("b"))
    await _add_step(repos, version_id, 0, **_email_settings("c"))

    await executor.execute_workflow(version_id)

    assert [r.subject for r in provider.sent_emails] == ["c", "a", "b"]


@pytest.mark.asyncio
async def test_failing_step_stops_the_run(executor, repos, provider, version_id):
    await _add_step(repos, version_id, 0, **_email_settings("ok"))
    await _add_step(
        repos, version_id, 1, to_email="ann@example.com", subject="missing sender", body_text="x"
    )
    await _add_step(repos, version_id, 2, **_email_settings("never"))

    run = await executor.execute_workflow(version_id)

    assert run.status == WorkflowRunStatus.FAILED
    assert "Missing from_email in settings" in run.error
    assert run.output["steps_executed"] == 1
    assert [r.subject for r in provider.sent_emails] == ["ok"]


@pytest.mark.asyncio
async def test_unknown_template_fails_the_run(executor, repos, version_id):
    await _add_step(
        repos,
        version_id,
        0,
        from_email="noreply@oxicrm.com",
        to_email="ann@example.com",
        template_id=str(uuid.uuid4()),
    )
    run = await executor.execute_workflow(version_id)
    assert run.status == WorkflowRunStatus.FAILED
    assert "not found" in run.error


@pytest.mark.asyncio
async def test_step_renders_template(executor, repos, provider, version_id):
    template = await repos.templates.create(
        EmailTemplate(name="hello", subject="Hi {{name}}", body_text="Hello {{name}}")
    )
    await _add_step(
        repos,
        version_id,
        0,
        from_email="noreply@oxicrm.com",
        to_email="ann@example.com",
        template_id=str(template.id),
        template_variables={"name": "Ann"},
        cc_emails="not-a-list",
    )

    run = await executor.execute_workflow(version_id)

    assert run.status == WorkflowRunStatus.COMPLETED
    assert provider.sent_emails[0].subject == "Hi Ann"
    assert provider.sent_emails[0].cc is None


@pytest.mark.asyncio
async def test_other_step_kinds_are_no_ops(executor, repos, provider, version_id):
    for position, kind in enumerate(
        [
            WorkflowStepType.CREATE_RECORD,
            WorkflowStepType.UPDATE_RECORD,
            WorkflowStepType.IF_ELSE,
            WorkflowStepType.FORM,
            WorkflowStepType.CODE,
        ]
    ):
        await _add_step(repos, version_id, position, step_type=kind)

    run = await executor.execute_workflow(version_id)

    assert run.status == WorkflowRunStatus.COMPLETED
    assert run.output == {"steps_executed": 5, "email_ids": []}
    assert provider.sent_emails == []


@pytest.mark.asyncio
async def test_version_without_steps_completes(executor, version_id):
    run = await executor.execute_workflow(version_id)
    assert run.status == WorkflowRunStatus.COMPLETED
    assert run.output == {"steps_executed": 0, "email_ids": []}


@pytest.mark.asyncio
async def test_null_text_settings_fall_back_to_template(executor, repos, provider, version_id):
    template = await repos.templates.create(
        EmailTemplate(name="nulls", subject="Hi {{name}}", body_text="Hello {{name}}")
    )
    await _add_step(
        repos,
        version_id,
        0,
        from_email="noreply@oxicrm.com",
        to_email="ann@example.com",
        subject=None,
        body_text=None,
        body_html=42,
        template_id=str(template.id),
        template_variables={"name": "Ann"},
    )

    run = await executor.execute_workflow(version_id)

    assert run.status == WorkflowRunStatus.COMPLETED
    assert run.error is None
    assert provider.sent_emails[0].subject == "Hi Ann"
    assert provider.sent_emails[0].body_text == "Hello Ann"
    assert provider.sent_emails[0].body_html is None


@pytest.mark.asyncio
async def test_null_text_settings_without_template_fail_validation(executor, repos, provider, version_id):
    await _add_step(
        repos,
        version_id,
        0,
        from_email="noreply@oxicrm.com",
        to_email="ann@example.com",
        subject=None,
        body_text="Body",
    )

    run = await executor.execute_workflow(version_id)

    assert run.status == WorkflowRunStatus.FAILED
    assert "Email subject cannot be empty" in run.error
    assert provider.sent_emails == []
