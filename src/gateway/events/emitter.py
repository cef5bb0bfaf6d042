"""Event emitter implementations for gateway observability.

The dispatcher emits one GatewayEvent per request without knowing where it
goes. Emitters route the event to a sink:

- LoggingEventEmitter: Emits events as structured log entries
- CompositeEventEmitter: Emits to multiple sinks simultaneously
- NullEventEmitter: Discards events (for testing)

The Prometheus sink lives in metrics.py.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from src.gateway.events.models import EventType, GatewayEvent


logger = logging.getLogger(__name__)


class EventSinkType(str, Enum):
    """Types of event sinks supported by the gateway.

    Attributes:
        LOGGING: Emit events as structured log entries.
        METRICS: Emit events as Prometheus metrics (counters, histograms).
    """

    LOGGING = "logging"
    METRICS = "metrics"


class EventEmitter(ABC):
    """Abstract base class for gateway event emitters.

    Implementations should be:
    - Async-safe: emit() is called from the request's task
    - Non-blocking: emit() should not delay the response noticeably
    - Fault-tolerant: emit() failures should not change the response

    Example:
        >>> class MyEmitter(EventEmitter):
        ...     async def emit(self, event: GatewayEvent) -> None:
        ...         pass
    """

    @abstractmethod
    async def emit(self, event: GatewayEvent) -> None:
        """Emit a gateway event.

        Args:
            event: The gateway event to emit.
        """
        pass

    async def close(self) -> None:
        """Close the emitter and release resources.

        The default implementation does nothing.
        """
        pass


class LoggingEventEmitter(EventEmitter):
    """Event emitter that logs events using structured logging.

    Events are logged at different levels based on event type:

    - DISPATCHED: INFO level
    - REJECTED, PAYLOAD_INVALID: INFO level
    - AUTH_FAILED: WARNING level
    - HANDLER_ERROR, INTERNAL_ERROR: ERROR level

    All event fields are passed through ``extra`` so log aggregators can
    filter on them.
    """

    def __init__(self):
        self._logger = logger
        self._log_level_map = {
            EventType.DISPATCHED: logging.INFO,
            EventType.REJECTED: logging.INFO,
            EventType.PAYLOAD_INVALID: logging.INFO,
            EventType.AUTH_FAILED: logging.WARNING,
            EventType.HANDLER_ERROR: logging.ERROR,
            EventType.INTERNAL_ERROR: logging.ERROR,
        }

    async def emit(self, event: GatewayEvent) -> None:
        log_level = self._log_level_map.get(event.event_type, logging.INFO)

        self._logger.log(
            log_level,
            "Gateway event: %s at %s (status=%d, event=%s, reason=%s)",
            event.event_type.value,
            event.stage,
            event.status_code,
            event.event_name,
            event.reason,
            extra=event.to_log_dict(),
        )


class CompositeEventEmitter(EventEmitter):
    """Event emitter that delegates to multiple child emitters.

    Failures in one emitter do not affect others; each emitter is called
    independently and errors are logged but not propagated.

    Example:
        >>> composite = CompositeEventEmitter(
        ...     [LoggingEventEmitter(), MetricsEventEmitter()]
        ... )
        >>> await composite.emit(event)  # Emits to both sinks
    """

    def __init__(self, emitters: Optional[List[EventEmitter]] = None):
        self._emitters: List[EventEmitter] = emitters or []

    @property
    def emitters(self) -> List[EventEmitter]:
        """Get the list of child emitters (read-only copy)."""
        return list(self._emitters)

    async def emit(self, event: GatewayEvent) -> None:
        for emitter in self._emitters:
            try:
                await emitter.emit(event)
            except Exception as e:
                logger.error(
                    "Failed to emit event to %s: %s",
                    type(emitter).__name__,
                    str(e),
                    extra={
                        "emitter_type": type(emitter).__name__,
                        "event_type": event.event_type.value,
                        "error": str(e),
                    },
                )

    async def close(self) -> None:
        for emitter in self._emitters:
            try:
                await emitter.close()
            except Exception as e:
                logger.error(
                    "Failed to close emitter %s: %s",
                    type(emitter).__name__,
                    str(e),
                )


class NullEventEmitter(EventEmitter):
    """Event emitter that discards all events."""

    async def emit(self, event: GatewayEvent) -> None:
        pass


def create_event_emitter(
    sink_types: Optional[List[EventSinkType]] = None,
) -> EventEmitter:
    """Factory function to create event emitters based on configuration.

    If multiple sink types are requested, a CompositeEventEmitter is
    returned that delegates to all of them.

    Args:
        sink_types: Event sink types to enable. None selects a
                    LoggingEventEmitter; an empty list disables events
                    and returns a NullEventEmitter.

    Example:
        >>> emitter = create_event_emitter([EventSinkType.LOGGING])
        >>> isinstance(emitter, LoggingEventEmitter)
        True
    """
    if sink_types is None:
        return LoggingEventEmitter()
    if not sink_types:
        return NullEventEmitter()

    emitters: List[EventEmitter] = []

    for sink_type in sink_types:
        sink_type = EventSinkType(sink_type)
        if sink_type == EventSinkType.LOGGING:
            emitters.append(LoggingEventEmitter())
        elif sink_type == EventSinkType.METRICS:
            # Imported here because metrics.py imports from this module
            from src.gateway.events.metrics import MetricsEventEmitter
            emitters.append(MetricsEventEmitter())

    if len(emitters) == 1:
        return emitters[0]

    return CompositeEventEmitter(emitters)
