"""Gateway configuration using pydantic-settings.

This module defines the GatewaySettings class that reads configuration
from environment variables with the GATEWAY_ prefix. The webhook secret is
the only required value; everything else has a default that matches what
GitHub sends.

The secret is held as a SecretStr so it never shows up in reprs, logs or
validation errors.
"""

from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_ALGORITHMS = ("sha256", "sha1", "sha512")

SUPPORTED_EVENT_SINKS = ("logging", "metrics")


class GatewaySettings(BaseSettings):
    """Webhook gateway configuration from environment variables.

    All environment variables are prefixed with GATEWAY_
    (e.g., GATEWAY_GITHUB_WEBHOOK_SECRET).

    Required fields (must be set via environment variables):
    - github_webhook_secret: Shared secret used as the HMAC key
    """

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Signature Verification
    # -------------------------------------------------------------------------
    # Shared secret for validating webhook signatures
    github_webhook_secret: SecretStr

    # Hash algorithm expected in the signature header prefix
    signature_algorithm: str = "sha256"

    # -------------------------------------------------------------------------
    # Request Headers
    # -------------------------------------------------------------------------
    signature_header: str = "x-hub-signature-256"
    event_header: str = "x-github-event"
    delivery_header: str = "x-github-delivery"

    # -------------------------------------------------------------------------
    # Routing and Dispatch
    # -------------------------------------------------------------------------
    # Path the webhook route is mounted on
    webhook_path: str = "/webhook/v1/fetch"

    # Import string ("module:attribute") for the event handler.
    # Empty selects the built-in GitHub handler.
    handler: str = ""

    # Observability sinks for gateway events
    event_sinks: List[str] = ["logging", "metrics"]

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_webhook_secret")
    @classmethod
    def validate_webhook_secret(cls, v: SecretStr) -> SecretStr:
        """Validate that webhook secret is not empty."""
        if not v.get_secret_value().strip():
            raise ValueError("github_webhook_secret cannot be empty")
        return v

    @field_validator("signature_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Validate that the signature algorithm is supported."""
        v = v.strip().lower()
        if v not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"signature_algorithm must be one of {', '.join(SUPPORTED_ALGORITHMS)}"
            )
        return v

    @field_validator("signature_header", "event_header", "delivery_header")
    @classmethod
    def normalize_header_name(cls, v: str) -> str:
        """Header names are compared lowercase."""
        v = v.strip().lower()
        if not v:
            raise ValueError("header names cannot be empty")
        return v

    @field_validator("webhook_path")
    @classmethod
    def validate_webhook_path(cls, v: str) -> str:
        """Validate that the webhook path is absolute."""
        if not v.startswith("/"):
            raise ValueError("webhook_path must start with /")
        return v

    @field_validator("event_sinks")
    @classmethod
    def validate_event_sinks(cls, v: List[str]) -> List[str]:
        """Validate that every event sink is known."""
        sinks = [s.strip().lower() for s in v if s.strip()]
        for sink in sinks:
            if sink not in SUPPORTED_EVENT_SINKS:
                raise ValueError(f"Unknown event sink: {sink}")
        return sinks

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is a standard logging level name."""
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    @property
    def secret_bytes(self) -> bytes:
        """The webhook secret encoded as the HMAC key."""
        return self.github_webhook_secret.get_secret_value().encode("utf-8")


def get_settings() -> GatewaySettings:
    """Create and return GatewaySettings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return GatewaySettings()
