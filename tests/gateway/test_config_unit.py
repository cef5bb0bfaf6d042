"""Tests for gateway configuration loading."""

import pytest
from pydantic import ValidationError

from src.gateway.config import GatewaySettings, get_settings


class TestGatewaySettings:
    """Tests for GatewaySettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_GITHUB_WEBHOOK_SECRET", "env-secret")

        settings = GatewaySettings(_env_file=None)

        assert settings.signature_algorithm == "sha256"
        assert settings.signature_header == "x-hub-signature-256"
        assert settings.event_header == "x-github-event"
        assert settings.delivery_header == "x-github-delivery"
        assert settings.webhook_path == "/webhook/v1/fetch"
        assert settings.handler == ""
        assert settings.event_sinks == ["logging", "metrics"]
        assert settings.port == 8080

    def test_secret_loaded_from_env(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_GITHUB_WEBHOOK_SECRET", "env-secret")

        settings = get_settings()

        assert settings.secret_bytes == b"env-secret"

    def test_missing_secret_fails(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValidationError):
            GatewaySettings(_env_file=None)

    def test_blank_secret_fails(self):
        with pytest.raises(ValidationError):
            GatewaySettings(github_webhook_secret="   ", _env_file=None)

    def test_secret_is_not_in_repr(self):
        settings = GatewaySettings(github_webhook_secret="hunter2", _env_file=None)

        assert "hunter2" not in repr(settings)
        assert "hunter2" not in str(settings.github_webhook_secret)

    def test_header_names_are_lowercased(self):
        settings = GatewaySettings(
            github_webhook_secret="s",
            signature_header="X-Hub-Signature-256",
            event_header=" X-GitHub-Event ",
            _env_file=None,
        )

        assert settings.signature_header == "x-hub-signature-256"
        assert settings.event_header == "x-github-event"

    def test_algorithm_is_validated(self):
        assert GatewaySettings(
            github_webhook_secret="s", signature_algorithm="SHA1", _env_file=None
        ).signature_algorithm == "sha1"

        with pytest.raises(ValidationError):
            GatewaySettings(
                github_webhook_secret="s", signature_algorithm="md5", _env_file=None
            )

    def test_webhook_path_must_be_absolute(self):
        with pytest.raises(ValidationError):
            GatewaySettings(
                github_webhook_secret="s", webhook_path="webhook", _env_file=None
            )

    def test_unknown_event_sink_fails(self):
        with pytest.raises(ValidationError):
            GatewaySettings(
                github_webhook_secret="s", event_sinks=["kafka"], _env_file=None
            )

    def test_event_sinks_from_env_json(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_GITHUB_WEBHOOK_SECRET", "s")
        monkeypatch.setenv("GATEWAY_EVENT_SINKS", '["metrics"]')

        assert GatewaySettings(_env_file=None).event_sinks == ["metrics"]

    def test_log_level_is_validated(self):
        assert GatewaySettings(
            github_webhook_secret="s", log_level="debug", _env_file=None
        ).log_level == "DEBUG"

        with pytest.raises(ValidationError):
            GatewaySettings(github_webhook_secret="s", log_level="LOUD", _env_file=None)
