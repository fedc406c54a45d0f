"""Command line interface for the oxicrm automation pipeline."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional
from uuid import UUID

import typer

from oxicrm import AutomationRuntime, get_repositories
from oxicrm.email import SendEmailInput
from oxicrm.errors import DomainError
from oxicrm.models import EmailStatus

app = typer.Typer(help="CLI for the oxicrm automation pipeline")

# Command groups
worker_app = typer.Typer(help="Commands for running background workers")
email_app = typer.Typer(help="Commands for sending and inspecting emails")
workflow_app = typer.Typer(help="Commands for executing and inspecting workflows")

app.add_typer(worker_app, name="worker")
app.add_typer(email_app, name="email")
app.add_typer(workflow_app, name="workflow")


@app.callback()
def main(
    log_level: str = typer.Option("INFO", help="Root logging level"),
) -> None:
    """oxicrm CLI entry point."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@worker_app.command("start")
def worker_start(lifespan: Optional[float] = None) -> None:
    """
    Run the event subscribers, the email job worker and the pending email scheduler.

    Args:
        lifespan: Seconds to run before shutting down (default: run indefinitely)

    Example:
        oxicrm worker start
        oxicrm worker start --lifespan 300
    """
    runtime = AutomationRuntime.from_config()
    typer.echo("Starting automation runtime")
    asyncio.run(runtime.run(lifespan=lifespan))
    stats = runtime.worker.stats
    typer.echo(
        f"Worker processed {stats.processed} job(s), "
        f"sent {stats.emails_sent}, failed {stats.emails_failed}"
    )


@email_app.command("send")
def email_send(
    from_email: str = typer.Option(..., "--from", help="Sender address"),
    to_email: str = typer.Option(..., "--to", help="Recipient address"),
    subject: str = typer.Option("", help="Subject (ignored with --template-id)"),
    body: str = typer.Option("", help="Plain text body (ignored with --template-id)"),
    template_id: Optional[str] = typer.Option(None, help="Email template id"),
    variables: Optional[str] = typer.Option(
        None, "--vars", help="JSON object of template variables"
    ),
) -> None:
    """
    Send one email through the configured provider.

    Example:
        oxicrm email send --from noreply@oxicrm.com --to a@b.com --subject Hi --body Hello
        oxicrm email send --from noreply@oxicrm.com --to a@b.com --template-id <uuid> --vars '{"name": "Ann"}'
    """
    try:
        template_variables = json.loads(variables) if variables else None
        data = SendEmailInput(
            from_email=from_email,
            to_email=to_email,
            subject=subject,
            body_text=body,
            template_id=UUID(template_id) if template_id else None,
            template_variables=template_variables,
        )
    except ValueError as e:
        typer.secho(f"Invalid arguments: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    runtime = AutomationRuntime.from_config()
    try:
        email = asyncio.run(runtime.send_email.execute(data))
    except DomainError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(f"{email.id}\t{email.status.value}")
    if email.error_message:
        typer.echo(f"Error: {email.error_message}")


@email_app.command("list")
def email_list(
    status: Optional[str] = typer.Option(None, help="Only show emails with this status"),
) -> None:
    """
    List emails with their direction and delivery status.

    Example:
        oxicrm email list --status pending
    """
    repos = get_repositories()
    emails = asyncio.run(repos.emails.find_all())
    if status:
        try:
            wanted = EmailStatus(status.lower())
        except ValueError:
            typer.secho(f"Unknown status: {status}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        emails = [e for e in emails if e.status == wanted]
    if not emails:
        typer.echo("No emails found")
        return
    for email in emails:
        typer.echo(
            f"{email.id}\t{email.direction.value}\t{email.status.value}\t"
            f"{email.to_email}\t{email.subject}"
        )


@workflow_app.command("runs")
def workflow_runs() -> None:
    """List workflow runs with their status."""
    repos = get_repositories()
    runs = asyncio.run(repos.workflow_runs.find_all())
    if not runs:
        typer.echo("No workflow runs found")
        return
    for run in runs:
        typer.echo(f"{run.id}\t{run.workflow_version_id}\t{run.status.value}")


@workflow_app.command("show")
def workflow_show(run_id: str) -> None:
    """
    Show status, output and error of one workflow run.

    Example:
        oxicrm workflow show 6f1c...
    """
    repos = get_repositories()
    try:
        run = asyncio.run(repos.workflow_runs.find_by_id(UUID(run_id)))
    except ValueError:
        run = None
    if run is None:
        typer.echo("Workflow run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Workflow run {run.id}: {run.status.value}")
    if run.output:
        typer.echo(f"Output: {json.dumps(run.output)}")
    if run.error:
        typer.echo(f"Error: {run.error}")


@workflow_app.command("execute")
def workflow_execute(workflow_version_id: str) -> None:
    """
    Execute every step of a workflow version and print the resulting run.

    Exits with code 1 when the run fails.

    Example:
        oxicrm workflow execute 0b6e...
    """
    try:
        version_id = UUID(workflow_version_id)
    except ValueError:
        typer.secho(f"Invalid workflow version id: {workflow_version_id}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    runtime = AutomationRuntime.from_config()
    run = asyncio.run(runtime.executor.execute_workflow(version_id))
    typer.echo(f"{run.id}\t{run.status.value}")
    if run.error:
        typer.echo(f"Error: {run.error}")
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
