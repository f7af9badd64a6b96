"""Pytest configuration for all tests."""

import pytest

from deploy_relay.config import RelaySettings


@pytest.fixture
def relay_settings(clean_env) -> RelaySettings:
    """Settings with test values, independent of the process environment."""
    return RelaySettings(
        _env_file=None,
        coolify_api_url="https://coolify.test",
        coolify_api_key="test-api-key",
        webhooks_secret="test-webhook-secret",
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove relay environment variables so tests control them fully."""
    for name in (
        "COOLIFY_API_URL",
        "COOLIFY_API_KEY",
        "WEBHOOKS_SECRET",
        "REQUIRE_SIGNATURE",
        "PLATFORM_TIMEOUT_SECONDS",
        "HOST",
        "PORT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
