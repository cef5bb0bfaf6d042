"""Webhook ingress: request validation, dispatch and event handlers.

Requests are authenticated with the shared-secret HMAC signature before
any payload parsing happens. Verified events are passed to the configured
EventHandler and its result is returned to the sender as JSON.
"""

from .dispatcher import IngressDispatcher, create_dispatcher
from .handler import (
    CallbackEventHandler,
    EventHandler,
    GitHubEventHandler,
    HandlerLoadError,
    load_event_handler,
)
from .models import (
    DispatchResponse,
    DispatchStage,
    EventEnvelope,
    HandlerResult,
    IncomingRequest,
)

__all__ = [
    "CallbackEventHandler",
    "DispatchResponse",
    "DispatchStage",
    "EventEnvelope",
    "EventHandler",
    "GitHubEventHandler",
    "HandlerLoadError",
    "HandlerResult",
    "IncomingRequest",
    "IngressDispatcher",
    "create_dispatcher",
    "load_event_handler",
]
