"""Shared fixtures for the automation pipeline tests."""

from datetime import datetime, timezone

import pytest

from oxicrm.clock import FrozenClock
from oxicrm.email import MockEmailProvider, ReceiveEmail, SendEmail
from oxicrm.persistence import Repositories


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 1, 30, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def repos():
    return Repositories.in_memory()


@pytest.fixture
def provider():
    return MockEmailProvider()


@pytest.fixture
def send_email(repos, provider, clock):
    return SendEmail(
        repos.emails,
        repos.templates,
        repos.timeline,
        provider,
        clock=clock,
    )


@pytest.fixture
def receive_email(repos, clock):
    return ReceiveEmail(repos.emails, repos.timeline, clock=clock)
