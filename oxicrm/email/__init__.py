"""Transactional email: providers, templates and the send/receive use cases."""

from __future__ import annotations

import os
from typing import Optional

from ..config import OxiCrmConfig, load_config
from .delivery import build_request, deliver
from .provider import (
    EmailProvider,
    HttpEmailProvider,
    MockEmailProvider,
    SendEmailRequest,
    SendEmailResponse,
)
from .receive import ReceiveEmail, ReceiveEmailInput
from .send import SendEmail, SendEmailInput
from .templates import TemplateEngine, render


def get_email_provider(
    backend: Optional[str] = None, config: Optional[OxiCrmConfig] = None
) -> EmailProvider:
    """Factory function to get the configured email provider."""

    config = config or load_config()
    backend = (
        backend or os.getenv("OXICRM_EMAIL_BACKEND") or config.email.backend
    ).lower()

    if backend == "mock":
        return MockEmailProvider()
    elif backend == "http":
        http_conf = config.email.http
        return HttpEmailProvider(
            base_url=http_conf.base_url,
            api_key=http_conf.api_key,
            timeout=http_conf.timeout,
        )
    else:
        raise ValueError(f"Unsupported email backend: {backend}")


__all__ = [
    "EmailProvider",
    "HttpEmailProvider",
    "MockEmailProvider",
    "SendEmailRequest",
    "SendEmailResponse",
    "ReceiveEmail",
    "ReceiveEmailInput",
    "SendEmail",
    "SendEmailInput",
    "TemplateEngine",
    "render",
    "build_request",
    "deliver",
    "get_email_provider",
]
