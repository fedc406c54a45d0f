"""Tests for configuration loading."""

from oxicrm.config import load_config
from oxicrm.email import HttpEmailProvider, MockEmailProvider, get_email_provider


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("OXICRM_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("OXICRM_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("OXICRM_EMAIL_BACKEND", raising=False)

    config = load_config()
    assert config.event_bus.capacity == 100
    assert config.jobs.queue_capacity == 100
    assert config.jobs.pending_email_interval == 60.0
    assert config.email.backend == "mock"
    assert config.email.system_sender == "noreply@oxicrm.com"
    assert config.database_url is None


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
jobs:
  pending_email_interval: 5
email:
  backend: http
  sales_inbox: team@example.com
  http:
    base_url: https://mail.example.com/api
    api_key: secret
"""
    )
    monkeypatch.setenv("OXICRM_CONFIG", str(config_path))
    monkeypatch.delenv("OXICRM_EMAIL_BACKEND", raising=False)

    config = load_config()
    assert config.jobs.pending_email_interval == 5
    assert config.email.sales_inbox == "team@example.com"
    assert config.email.http.api_key == "secret"

    provider = get_email_provider(config=config)
    assert isinstance(provider, HttpEmailProvider)
    assert provider.base_url == "https://mail.example.com/api"


def test_environment_overrides(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("email:\n  backend: http\n")
    monkeypatch.setenv("OXICRM_CONFIG", str(config_path))
    monkeypatch.setenv("OXICRM_EMAIL_BACKEND", "MOCK")
    monkeypatch.setenv("OXICRM_DATABASE_URL", "sqlite://:memory:")

    config = load_config()
    assert config.email.backend == "mock"
    assert config.database_url == "sqlite://:memory:"
    assert isinstance(get_email_provider(config=config), MockEmailProvider)
