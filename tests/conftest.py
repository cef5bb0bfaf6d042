"""Pytest configuration for all tests."""

import os

import pytest

from src.gateway.config import GatewaySettings


TEST_SECRET = "test-webhook-secret-123"


@pytest.fixture(autouse=True)
def _isolate_gateway_env(monkeypatch):
    """Keep GATEWAY_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.upper().startswith("GATEWAY_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def gateway_settings() -> GatewaySettings:
    return GatewaySettings(
        github_webhook_secret=TEST_SECRET,
        event_sinks=[],
        _env_file=None,
    )
