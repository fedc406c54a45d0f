from __future__ import annotations

import os
from typing import Optional, Literal

import yaml
from pydantic import BaseModel


class EventBusConfig(BaseModel):
    """In-process event bus settings."""

    capacity: int = 100


class JobsConfig(BaseModel):
    """Job queue and periodic scheduler settings."""

    queue_capacity: int = 100
    pending_email_interval: float = 60.0


class HttpEmailConfig(BaseModel):
    """Configuration for the HTTP email provider."""

    base_url: str = "http://localhost:8025/api"
    api_key: Optional[str] = None
    timeout: float = 10.0


class EmailConfig(BaseModel):
    """Email delivery settings."""

    backend: Literal["mock", "http"] = "mock"
    system_sender: str = "noreply@oxicrm.com"
    sales_inbox: str = "sales@oxicrm.com"
    crm_base_url: str = "http://localhost:3001"
    provider_timeout: Optional[float] = 30.0
    http: HttpEmailConfig = HttpEmailConfig()


class OxiCrmConfig(BaseModel):
    """Top-level configuration model."""

    event_bus: EventBusConfig = EventBusConfig()
    jobs: JobsConfig = JobsConfig()
    email: EmailConfig = EmailConfig()
    database_url: Optional[str] = None


def load_config(path: Optional[str] = None) -> OxiCrmConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to OXICRM_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("OXICRM_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = OxiCrmConfig(**data)
    else:
        config = OxiCrmConfig()

    env_db_url = os.getenv("OXICRM_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_backend = os.getenv("OXICRM_EMAIL_BACKEND")
    if env_backend:
        config.email = EmailConfig.model_validate(
            {**config.email.model_dump(), "backend": env_backend.lower()}
        )
    return config
