import asyncio
import uuid

import pytest
from typer.testing import CliRunner

import oxicrm.persistence as persistence
from oxicrm.cli import app
from oxicrm.models import (
    Email,
    EmailDirection,
    EmailStatus,
    WorkflowRun,
    WorkflowRunStatus,
    WorkflowStepType,
    WorkflowVersionStep,
)
from oxicrm.persistence import Repositories


@pytest.fixture
def repos(monkeypatch, tmp_path):
    monkeypatch.setenv("OXICRM_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("OXICRM_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("OXICRM_EMAIL_BACKEND", raising=False)
    repos = Repositories.in_memory()
    monkeypatch.setattr(persistence, "_repositories_instance", repos)
    return repos


def test_email_send_and_list(repos):
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "email",
            "send",
            "--from",
            "noreply@oxicrm.com",
            "--to",
            "ann@example.com",
            "--subject",
            "Hi",
            "--body",
            "Hello",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "sent" in result.output

    [email] = asyncio.run(repos.emails.find_all())
    assert email.status == EmailStatus.SENT
    assert str(email.id) in result.output

    result = runner.invoke(app, ["email", "list", "--status", "sent"])
    assert result.exit_code == 0, result.output
    assert "ann@example.com" in result.output

    result = runner.invoke(app, ["email", "list", "--status", "pending"])
    assert "No emails found" in result.output


def test_email_send_rejects_invalid_input(repos):
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["email", "send", "--from", "nobody", "--to", "ann@example.com", "--subject", "s", "--body", "b"],
    )
    assert result.exit_code == 1
    assert "Validation failed" in result.output
    assert asyncio.run(repos.emails.find_all()) == []


def test_email_list_unknown_status(repos):
    asyncio.run(
        repos.emails.create(
            Email(
                direction=EmailDirection.INBOUND,
                status=EmailStatus.RECEIVED,
                from_email="ann@example.com",
                to_email="sales@oxicrm.com",
                subject="s",
                body_text="b",
            )
        )
    )
    result = CliRunner().invoke(app, ["email", "list", "--status", "bogus"])
    assert result.exit_code == 1
    assert "Unknown status" in result.output


def test_workflow_runs_and_show(repos):
    run = asyncio.run(
        repos.workflow_runs.create(
            WorkflowRun(
                workflow_version_id=uuid.uuid4(),
                status=WorkflowRunStatus.FAILED,
                output={"steps_executed": 0, "email_ids": []},
                error="Validation failed: Missing from_email in settings",
            )
        )
    )
    runner = CliRunner()

    result = runner.invoke(app, ["workflow", "runs"])
    assert result.exit_code == 0, result.output
    assert str(run.id) in result.output
    assert "failed" in result.output

    result = runner.invoke(app, ["workflow", "show", str(run.id)])
    assert result.exit_code == 0, result.output
    assert "Missing from_email" in result.output

    result = runner.invoke(app, ["workflow", "show", "missing-id"])
    assert result.exit_code == 1
    assert "Workflow run not found" in result.output


def test_workflow_execute(repos):
    version_id = uuid.uuid4()
    asyncio.run(
        repos.workflow_steps.create(
            WorkflowVersionStep(
                workflow_version_id=version_id,
                step_type=WorkflowStepType.SEND_EMAIL,
                settings={
                    "from_email": "noreply@oxicrm.com",
                    "to_email": "ann@example.com",
                    "subject": "Hi",
                    "body_text": "Hello",
                },
            )
        )
    )
    result = CliRunner().invoke(app, ["workflow", "execute", str(version_id)])
    assert result.exit_code == 0, result.output
    assert "completed" in result.output

    [run] = asyncio.run(repos.workflow_runs.find_all())
    assert run.output["steps_executed"] == 1


def test_workflow_execute_reports_failure(repos):
    version_id = uuid.uuid4()
    asyncio.run(
        repos.workflow_steps.create(
            WorkflowVersionStep(
                workflow_version_id=version_id,
                step_type=WorkflowStepType.SEND_EMAIL,
                settings={"to_email": "ann@example.com"},
            )
        )
    )
    result = CliRunner().invoke(app, ["workflow", "execute", str(version_id)])
    assert result.exit_code == 1
    assert "Missing from_email in settings" in result.output


def test_worker_start_with_lifespan(repos):
    result = CliRunner().invoke(app, ["worker", "start", "--lifespan", "0.05"])
    assert result.exit_code == 0, result.output
    assert "Worker processed 0 job(s)" in result.output
