"""Gateway event models for observability.

Every webhook request ends in exactly one terminal state of the dispatcher.
A GatewayEvent is emitted for that state so that operators can tell apart
failure causes that share one external response (for example a malformed
signature header and a digest mismatch both answer 403).

The models use Pydantic for validation, consistent with the rest of the
gateway's models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Terminal outcomes of a webhook request.

    Attributes:
        REJECTED: Protocol error (wrong method, missing required header).
        AUTH_FAILED: Signature missing, malformed or not matching.
        PAYLOAD_INVALID: Signature valid but the body is not JSON.
        HANDLER_ERROR: The event handler raised or returned an
            unserializable result.
        INTERNAL_ERROR: The gateway itself failed (e.g. body unreadable).
        DISPATCHED: The handler ran and its result was returned.
    """

    REJECTED = "rejected"
    AUTH_FAILED = "auth_failed"
    PAYLOAD_INVALID = "payload_invalid"
    HANDLER_ERROR = "handler_error"
    INTERNAL_ERROR = "internal_error"
    DISPATCHED = "dispatched"


class GatewayEvent(BaseModel):
    """Structured event emitted once per webhook request.

    Attributes:
        event_type: The terminal outcome category.
        stage: Dispatcher stage where the request terminated.
        status_code: HTTP status returned to the sender.
        event_name: Sender event name (e.g. "push") when known.
        delivery_id: Sender delivery identifier when present.
        reason: Internal failure reason, never sent to the caller.
        timestamp: When the event occurred (UTC).
        details: Additional context specific to the event type.

    Details Field Conventions:
        For HANDLER_ERROR events:
            - error_type: Exception class name

        For DISPATCHED events:
            - duration_seconds: Time spent awaiting the handler
    """

    event_type: EventType = Field(
        ...,
        description="The terminal outcome category",
    )

    stage: str = Field(
        ...,
        min_length=1,
        description="Dispatcher stage where the request terminated",
    )

    status_code: int = Field(
        ...,
        ge=100,
        le=599,
        description="HTTP status code returned to the sender",
    )

    event_name: Optional[str] = Field(
        default=None,
        description="Sender event name, if the header was present",
    )

    delivery_id: Optional[str] = Field(
        default=None,
        description="Sender delivery identifier, if the header was present",
    )

    reason: Optional[str] = Field(
        default=None,
        description="Internal failure reason",
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC timezone)",
    )

    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context specific to the event type",
    )

    def to_log_dict(self) -> Dict[str, Any]:
        """Convert event to a flat dictionary suitable for structured logging.

        Example:
            >>> event = GatewayEvent(
            ...     event_type=EventType.AUTH_FAILED,
            ...     stage="signature_verify",
            ...     status_code=403,
            ...     reason="signature_mismatch",
            ... )
            >>> event.to_log_dict()["reason"]
            'signature_mismatch'
        """
        return {
            "event_type": self.event_type.value,
            "stage": self.stage,
            "status_code": self.status_code,
            "event_name": self.event_name,
            "delivery_id": self.delivery_id,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
            **self.details,
        }
