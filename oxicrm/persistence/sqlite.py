"""SQLite implementation of the repositories."""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from pathlib import Path
from typing import Any
from uuid import UUID

from ..errors import InfrastructureError, InvalidStateError, NotFoundError
from ..models import (
    Email,
    EmailStatus,
    EmailTemplate,
    TimelineActivity,
    WorkflowRun,
    WorkflowVersionStep,
)


class SQLiteStore:
    """Shared connection and schema for the SQLite repositories.

    Rows keep the entity as a JSON document plus the columns needed for
    lookups.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS emails (
                id TEXT PRIMARY KEY,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL,
                data TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS email_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                workspace_id TEXT NOT NULL,
                data TEXT NOT NULL,
                UNIQUE (name, workspace_id)
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS timeline_activities (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                data TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_runs (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                data TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_version_steps (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                workflow_version_id TEXT NOT NULL,
                data TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        with self._lock:
            try:
                cur = self._conn.cursor()
                cur.execute(query, params)
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                raise InvalidStateError(str(e)) from e
            except sqlite3.Error as e:
                self._conn.rollback()
                raise InfrastructureError(f"SQLite error: {e}") from e
            return cur.rowcount

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._lock:
            try:
                cur = self._conn.cursor()
                cur.execute(query, params)
                return cur.fetchall()
            except sqlite3.Error as e:
                raise InfrastructureError(f"SQLite error: {e}") from e

    async def execute(self, query: str, *params: Any) -> int:
        return await asyncio.to_thread(self._execute, query, *params)

    async def fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        return await asyncio.to_thread(self._fetchall, query, *params)

    def close(self) -> None:
        self._conn.close()


class SQLiteEmailRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def find_all(self) -> list[Email]:
        rows = await self._store.fetchall(
            "SELECT data FROM emails ORDER BY created_at"
        )
        return [Email.model_validate_json(r["data"]) for r in rows]

    async def find_by_id(self, email_id: UUID) -> Email | None:
        rows = await self._store.fetchall(
            "SELECT data FROM emails WHERE id = ?", str(email_id)
        )
        return Email.model_validate_json(rows[0]["data"]) if rows else None

    async def find_pending(self) -> list[Email]:
        rows = await self._store.fetchall(
            "SELECT data FROM emails WHERE status = ? ORDER BY created_at",
            EmailStatus.PENDING.value,
        )
        return [Email.model_validate_json(r["data"]) for r in rows]

    async def create(self, email: Email) -> Email:
        await self._store.execute(
            "INSERT INTO emails (id, status, created_at, data) VALUES (?, ?, ?, ?)",
            str(email.id),
            email.status.value,
            email.created_at.isoformat(),
            email.model_dump_json(),
        )
        return email

    async def update(self, email: Email) -> Email:
        count = await self._store.execute(
            "UPDATE emails SET status = ?, data = ? WHERE id = ?",
            email.status.value,
            email.model_dump_json(),
            str(email.id),
        )
        if count == 0:
            raise NotFoundError("Email", email.id)
        return email


class SQLiteEmailTemplateRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def find_by_id(self, template_id: UUID) -> EmailTemplate | None:
        rows = await self._store.fetchall(
            "SELECT data FROM email_templates WHERE id = ?", str(template_id)
        )
        return EmailTemplate.model_validate_json(rows[0]["data"]) if rows else None

    async def find_by_name(
        self, name: str, workspace_id: UUID | None = None
    ) -> EmailTemplate | None:
        if workspace_id is None:
            rows = await self._store.fetchall(
                "SELECT data FROM email_templates WHERE name = ?", name
            )
        else:
            rows = await self._store.fetchall(
                "SELECT data FROM email_templates WHERE name = ? AND workspace_id = ?",
                name,
                str(workspace_id),
            )
        return EmailTemplate.model_validate_json(rows[0]["data"]) if rows else None

    async def create(self, template: EmailTemplate) -> EmailTemplate:
        await self._store.execute(
            "INSERT INTO email_templates (id, name, workspace_id, data) VALUES (?, ?, ?, ?)",
            str(template.id),
            template.name,
            str(template.workspace_id),
            template.model_dump_json(),
        )
        return template


class SQLiteTimelineActivityRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def find_all(self) -> list[TimelineActivity]:
        rows = await self._store.fetchall(
            "SELECT data FROM timeline_activities ORDER BY seq"
        )
        return [TimelineActivity.model_validate_json(r["data"]) for r in rows]

    async def create(self, activity: TimelineActivity) -> TimelineActivity:
        await self._store.execute(
            "INSERT INTO timeline_activities (id, data) VALUES (?, ?)",
            str(activity.id),
            activity.model_dump_json(),
        )
        return activity


class SQLiteWorkflowRunRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def find_all(self) -> list[WorkflowRun]:
        rows = await self._store.fetchall(
            "SELECT data FROM workflow_runs ORDER BY created_at"
        )
        return [WorkflowRun.model_validate_json(r["data"]) for r in rows]

    async def find_by_id(self, run_id: UUID) -> WorkflowRun | None:
        rows = await self._store.fetchall(
            "SELECT data FROM workflow_runs WHERE id = ?", str(run_id)
        )
        return WorkflowRun.model_validate_json(rows[0]["data"]) if rows else None

    async def create(self, run: WorkflowRun) -> WorkflowRun:
        await self._store.execute(
            "INSERT INTO workflow_runs (id, created_at, data) VALUES (?, ?, ?)",
            str(run.id),
            run.created_at.isoformat(),
            run.model_dump_json(),
        )
        return run

    async def update(self, run: WorkflowRun) -> WorkflowRun:
        count = await self._store.execute(
            "UPDATE workflow_runs SET data = ? WHERE id = ?",
            run.model_dump_json(),
            str(run.id),
        )
        if count == 0:
            raise NotFoundError("Workflow run", run.id)
        return run


class SQLiteWorkflowVersionStepRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def find_by_version_id(self, version_id: UUID) -> list[WorkflowVersionStep]:
        rows = await self._store.fetchall(
            "SELECT data FROM workflow_version_steps WHERE workflow_version_id = ? ORDER BY seq",
            str(version_id),
        )
        return [WorkflowVersionStep.model_validate_json(r["data"]) for r in rows]

    async def create(self, step: WorkflowVersionStep) -> WorkflowVersionStep:
        await self._store.execute(
            "INSERT INTO workflow_version_steps (id, workflow_version_id, data) VALUES (?, ?, ?)",
            str(step.id),
            str(step.workflow_version_id),
            step.model_dump_json(),
        )
        return step
