"""Webhook request, envelope and result models.

The models use Pydantic for validation, consistent with the gateway's
configuration approach in config.py.
"""

import json
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


JSON_CONTENT_TYPE = "application/json"


class DispatchStage(str, Enum):
    """Stages a webhook request passes through, in order.

    Processing is strictly sequential and stops at the first failing stage.

    Attributes:
        METHOD_CHECK: Only POST is accepted.
        SIGNATURE_HEADER: The signature header must be present.
        EVENT_HEADER: The event name header must be present.
        BODY_CAPTURE: The raw body is read exactly once.
        SIGNATURE_VERIFY: HMAC over the raw body must match.
        PAYLOAD_PARSE: The raw body must be JSON.
        DISPATCH: The event handler is awaited.
        RESPOND: The handler result is serialized.
    """

    METHOD_CHECK = "method_check"
    SIGNATURE_HEADER = "signature_header"
    EVENT_HEADER = "event_header"
    BODY_CAPTURE = "body_capture"
    SIGNATURE_VERIFY = "signature_verify"
    PAYLOAD_PARSE = "payload_parse"
    DISPATCH = "dispatch"
    RESPOND = "respond"


class IncomingRequest(BaseModel):
    """A webhook request after its body has been captured.

    Header names are normalized to lowercase so lookups are
    case-insensitive. The model is frozen; the same ``body`` bytes are
    used for signature verification and JSON parsing.

    Attributes:
        method: Uppercase HTTP method.
        headers: Header mapping with lowercase names.
        body: Raw body bytes exactly as transmitted.
    """

    model_config = ConfigDict(frozen=True)

    method: str = Field(..., min_length=1)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.upper()

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> Dict[str, str]:
        if v is None:
            return {}
        items = v.items() if isinstance(v, Mapping) else v
        return {str(name).lower(): str(value) for name, value in items}

    def header(self, name: str) -> Optional[str]:
        """Look up a header by name, ignoring case."""
        return self.headers.get(name.lower())


class EventEnvelope(BaseModel):
    """A verified event ready to hand to the event handler.

    Attributes:
        event_name: Sender event name (e.g. "push", "pull_request").
        delivery_id: Sender delivery identifier, if provided.
        payload: Parsed JSON payload of any shape.
    """

    model_config = ConfigDict(frozen=True)

    event_name: str = Field(..., min_length=1)
    delivery_id: Optional[str] = None
    payload: Any = None


class HandlerResult(BaseModel):
    """Result shape returned by the built-in event handlers.

    Extra fields are allowed and serialized as-is. Custom handlers may
    return any JSON-serializable value instead of this model.

    Attributes:
        status: Outcome label (e.g. "success", "received").
        message: Human-readable summary.
        event: The event name that was handled.
    """

    model_config = ConfigDict(extra="allow")

    status: str
    message: str
    event: str


class DispatchResponse(BaseModel):
    """HTTP response produced by the dispatcher.

    Attributes:
        status_code: HTTP status code.
        content: JSON-encoded response body.
        stage: Stage at which processing terminated.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(..., ge=100, le=599)
    content: bytes
    stage: DispatchStage
    media_type: str = JSON_CONTENT_TYPE

    @classmethod
    def error(
        cls,
        status_code: int,
        message: str,
        stage: DispatchStage,
    ) -> "DispatchResponse":
        """Build an ``{"error": message}`` response."""
        return cls(
            status_code=status_code,
            content=json.dumps({"error": message}).encode("utf-8"),
            stage=stage,
        )

    def body_json(self) -> Any:
        """Decode the response body."""
        return json.loads(self.content)
