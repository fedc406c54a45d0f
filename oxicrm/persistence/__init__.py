"""Persistence layer for the automation pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from ..config import OxiCrmConfig, load_config
from .inmemory import (
    InMemoryEmailRepository,
    InMemoryEmailTemplateRepository,
    InMemoryTimelineActivityRepository,
    InMemoryWorkflowRunRepository,
    InMemoryWorkflowVersionStepRepository,
)
from .repository import (
    EmailRepository,
    EmailTemplateRepository,
    TimelineActivityRepository,
    WorkflowRunRepository,
    WorkflowVersionStepRepository,
)
from .sqlite import (
    SQLiteEmailRepository,
    SQLiteEmailTemplateRepository,
    SQLiteStore,
    SQLiteTimelineActivityRepository,
    SQLiteWorkflowRunRepository,
    SQLiteWorkflowVersionStepRepository,
)


@dataclass
class Repositories:
    """The set of repositories one runtime works against."""

    emails: EmailRepository
    templates: EmailTemplateRepository
    timeline: TimelineActivityRepository
    workflow_runs: WorkflowRunRepository
    workflow_steps: WorkflowVersionStepRepository

    @classmethod
    def in_memory(cls) -> "Repositories":
        return cls(
            emails=InMemoryEmailRepository(),
            templates=InMemoryEmailTemplateRepository(),
            timeline=InMemoryTimelineActivityRepository(),
            workflow_runs=InMemoryWorkflowRunRepository(),
            workflow_steps=InMemoryWorkflowVersionStepRepository(),
        )

    @classmethod
    def sqlite(cls, store: SQLiteStore) -> "Repositories":
        return cls(
            emails=SQLiteEmailRepository(store),
            templates=SQLiteEmailTemplateRepository(store),
            timeline=SQLiteTimelineActivityRepository(store),
            workflow_runs=SQLiteWorkflowRunRepository(store),
            workflow_steps=SQLiteWorkflowVersionStepRepository(store),
        )


_repositories_instance: Repositories | None = None


def get_repositories(
    database_url: Optional[str] = None, config: Optional[OxiCrmConfig] = None
) -> Repositories:
    """Factory function to obtain the repositories.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``OXICRM_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, in-memory repositories are returned.
    """

    global _repositories_instance
    if _repositories_instance is not None and database_url is None and config is None:
        return _repositories_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("OXICRM_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or getattr(config, "database_url", None)
    )

    if not database_url:
        _repositories_instance = Repositories.in_memory()
        return _repositories_instance

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repositories_instance = Repositories.sqlite(SQLiteStore(path))
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repositories_instance


__all__ = [
    "EmailRepository",
    "EmailTemplateRepository",
    "TimelineActivityRepository",
    "WorkflowRunRepository",
    "WorkflowVersionStepRepository",
    "InMemoryEmailRepository",
    "InMemoryEmailTemplateRepository",
    "InMemoryTimelineActivityRepository",
    "InMemoryWorkflowRunRepository",
    "InMemoryWorkflowVersionStepRepository",
    "SQLiteStore",
    "SQLiteEmailRepository",
    "SQLiteEmailTemplateRepository",
    "SQLiteTimelineActivityRepository",
    "SQLiteWorkflowRunRepository",
    "SQLiteWorkflowVersionStepRepository",
    "Repositories",
    "get_repositories",
]
