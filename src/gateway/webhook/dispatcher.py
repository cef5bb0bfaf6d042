"""Ingress dispatcher: the request lifecycle for a single webhook delivery.

A request moves through the stages of DispatchStage strictly in order and
stops at the first failure:

    method_check -> signature_header -> event_header -> body_capture
    -> signature_verify -> payload_parse -> dispatch -> respond

Every terminal state produces a JSON DispatchResponse and exactly one
GatewayEvent. Authentication failures share a single 403 body whatever the
cause; the cause is only recorded in the emitted event and the log.
Handler failures never expose exception text to the caller.

The dispatcher is framework-agnostic. The HTTP layer passes the method,
the headers and a coroutine function that reads the body; the body is read
once and the same bytes are used for hashing and parsing.
"""

import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from pydantic import BaseModel

from src.gateway.config import GatewaySettings
from src.gateway.events.emitter import EventEmitter, NullEventEmitter
from src.gateway.events.models import EventType, GatewayEvent
from src.gateway.signature.errors import SignatureError
from src.gateway.signature.verifier import SignatureVerifier
from src.gateway.webhook.handler import EventHandler
from src.gateway.webhook.models import (
    DispatchResponse,
    DispatchStage,
    EventEnvelope,
    IncomingRequest,
)

logger = logging.getLogger(__name__)


BodyReader = Callable[[], Awaitable[bytes]]

ERROR_METHOD_NOT_ALLOWED = "method not allowed"
ERROR_SIGNATURE_REQUIRED = "signature header is required"
ERROR_EVENT_MISSING = "event name is missing"
ERROR_FORBIDDEN = "Forbidden. Not gonna happen with that signature."
ERROR_INVALID_PAYLOAD = "invalid JSON payload"
ERROR_INTERNAL = "internal server error"


class IngressDispatcher:
    """Authenticates webhook requests and hands them to an EventHandler.

    Attributes:
        settings: Gateway settings, also passed to the handler as ``env``.
        verifier: Signature verifier bound to the shared secret.
        handler: Business logic invoked for verified events.
        emitter: Sink for one GatewayEvent per request.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        verifier: SignatureVerifier,
        handler: EventHandler,
        emitter: Optional[EventEmitter] = None,
    ) -> None:
        self.settings = settings
        self.verifier = verifier
        self.handler = handler
        self.emitter = emitter or NullEventEmitter()

    async def dispatch(
        self,
        method: str,
        headers: Mapping[str, str],
        read_body: BodyReader,
    ) -> DispatchResponse:
        """Run one request through every stage and build the response.

        Args:
            method: HTTP method of the request.
            headers: Request headers; names are matched case-insensitively.
            read_body: Coroutine function returning the raw body. It is
                called at most once, and only after the header checks.

        Returns:
            The response to send back to the sender.
        """
        normalized = {str(k).lower(): v for k, v in headers.items()}
        event_name = normalized.get(self.settings.event_header) or None
        delivery_id = normalized.get(self.settings.delivery_header) or None

        context = {"event_name": event_name, "delivery_id": delivery_id}

        # method_check
        if method.upper() != "POST":
            return await self._reject(
                405, ERROR_METHOD_NOT_ALLOWED, DispatchStage.METHOD_CHECK,
                EventType.REJECTED, "method_not_allowed", context,
            )

        # signature_header
        signature = normalized.get(self.settings.signature_header)
        if not signature:
            return await self._reject(
                400, ERROR_SIGNATURE_REQUIRED, DispatchStage.SIGNATURE_HEADER,
                EventType.REJECTED, "missing_signature_header", context,
            )

        # event_header
        if not event_name:
            return await self._reject(
                400, ERROR_EVENT_MISSING, DispatchStage.EVENT_HEADER,
                EventType.REJECTED, "missing_event_header", context,
            )

        # body_capture
        try:
            body = await read_body()
        except Exception:
            logger.exception("Failed to read webhook request body")
            return await self._reject(
                500, ERROR_INTERNAL, DispatchStage.BODY_CAPTURE,
                EventType.INTERNAL_ERROR, "body_unreadable", context,
            )

        request = IncomingRequest(method=method, headers=normalized, body=body)
        return await self._process(request, event_name, delivery_id)

    async def dispatch_request(self, request: IncomingRequest) -> DispatchResponse:
        """Dispatch a request whose body has already been captured."""

        async def read_body() -> bytes:
            return request.body

        return await self.dispatch(request.method, request.headers, read_body)

    async def _process(
        self,
        request: IncomingRequest,
        event_name: str,
        delivery_id: Optional[str],
    ) -> DispatchResponse:
        context = {"event_name": event_name, "delivery_id": delivery_id}
        signature = request.header(self.settings.signature_header)

        # signature_verify
        try:
            valid = self.verifier.verify(signature, request.body)
        except SignatureError as e:
            logger.info(
                "Rejected webhook %s: %s (%s)",
                delivery_id or "-",
                e.reason,
                e.message,
            )
            return await self._reject(
                403, ERROR_FORBIDDEN, DispatchStage.SIGNATURE_VERIFY,
                EventType.AUTH_FAILED, e.reason, context,
            )
        if not valid:
            return await self._reject(
                403, ERROR_FORBIDDEN, DispatchStage.SIGNATURE_VERIFY,
                EventType.AUTH_FAILED, "signature_mismatch", context,
            )

        # payload_parse
        try:
            payload = json.loads(request.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            logger.info("Webhook %s has a valid signature but unparsable body: %s",
                        delivery_id or "-", e)
            return await self._reject(
                400, ERROR_INVALID_PAYLOAD, DispatchStage.PAYLOAD_PARSE,
                EventType.PAYLOAD_INVALID, "invalid_json", context,
            )

        envelope = EventEnvelope(
            event_name=event_name,
            delivery_id=delivery_id,
            payload=payload,
        )

        # dispatch
        started = time.monotonic()
        try:
            result = await self.handler.handle(
                envelope.event_name, envelope.payload, self.settings
            )
        except Exception as e:
            logger.exception(
                "Event handler failed for %s event (delivery %s)",
                event_name,
                delivery_id or "-",
            )
            return await self._reject(
                500, ERROR_INTERNAL, DispatchStage.DISPATCH,
                EventType.HANDLER_ERROR, "handler_exception", context,
                details={"error_type": type(e).__name__},
            )
        duration = time.monotonic() - started

        # respond
        try:
            content = _serialize(result)
        except (TypeError, ValueError) as e:
            logger.error(
                "Event handler returned an unserializable result for %s: %s",
                event_name,
                e,
            )
            return await self._reject(
                500, ERROR_INTERNAL, DispatchStage.RESPOND,
                EventType.HANDLER_ERROR, "unserializable_result", context,
                details={"error_type": type(e).__name__},
            )

        await self._emit(
            GatewayEvent(
                event_type=EventType.DISPATCHED,
                stage=DispatchStage.RESPOND.value,
                status_code=200,
                details={"duration_seconds": duration},
                **context,
            )
        )
        return DispatchResponse(
            status_code=200,
            content=content,
            stage=DispatchStage.RESPOND,
        )

    async def _reject(
        self,
        status_code: int,
        message: str,
        stage: DispatchStage,
        event_type: EventType,
        reason: str,
        context: Dict[str, Any],
        details: Optional[Dict[str, Any]] = None,
    ) -> DispatchResponse:
        await self._emit(
            GatewayEvent(
                event_type=event_type,
                stage=stage.value,
                status_code=status_code,
                reason=reason,
                details=details or {},
                **context,
            )
        )
        return DispatchResponse.error(status_code, message, stage)

    async def _emit(self, event: GatewayEvent) -> None:
        try:
            await self.emitter.emit(event)
        except Exception as e:
            logger.error(
                "Failed to emit gateway event %s: %s",
                event.event_type.value,
                str(e),
            )


def _serialize(result: Any) -> bytes:
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json")
    return json.dumps(result, allow_nan=False).encode("utf-8")


def create_dispatcher(
    settings: GatewaySettings,
    handler: EventHandler,
    emitter: Optional[EventEmitter] = None,
) -> IngressDispatcher:
    """Build a dispatcher whose verifier uses the configured secret."""
    verifier = SignatureVerifier(
        settings.secret_bytes,
        algorithm=settings.signature_algorithm,
    )
    return IngressDispatcher(
        settings=settings,
        verifier=verifier,
        handler=handler,
        emitter=emitter,
    )
