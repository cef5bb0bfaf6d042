"""Prometheus metrics for gateway observability.

Metrics are exposed at the `/metrics` endpoint in Prometheus format.

Metrics Defined:
- gateway_requests_total: Counter of requests by outcome and status code
- gateway_signature_failures_total: Counter of authentication failures by
  internal reason (malformed header vs. digest mismatch)
- gateway_handler_duration_seconds: Histogram of handler execution time

The MetricsEventEmitter updates these from gateway events.
"""

import logging
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from src.gateway.events.emitter import EventEmitter
from src.gateway.events.models import EventType, GatewayEvent


logger = logging.getLogger(__name__)


# Handler calls are expected to be short; the upper buckets catch handlers
# that trigger downstream network calls.
DEFAULT_DURATION_BUCKETS = (
    0.005,
    0.01,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
)


class GatewayMetrics:
    """Container for all gateway Prometheus metrics.

    Supports custom registries for testing.

    Metrics:
        requests_total: Counter of terminal request outcomes.
            Labels: outcome (event type), status_code

        signature_failures_total: Counter of authentication failures.
            Labels: reason

        handler_duration_seconds: Histogram of handler execution time.
            Labels: event

    Example:
        >>> metrics = GatewayMetrics(registry=CollectorRegistry())
        >>> metrics.record_request("dispatched", 200)
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize gateway metrics.

        Args:
            registry: Optional Prometheus registry. If None, uses the
                      default REGISTRY. Pass a custom registry for testing.
        """
        self.registry = registry or REGISTRY

        self.requests_total = Counter(
            "gateway_requests_total",
            "Total number of webhook requests by terminal outcome",
            labelnames=["outcome", "status_code"],
            registry=self.registry,
        )

        self.signature_failures_total = Counter(
            "gateway_signature_failures_total",
            "Total number of rejected signatures by internal reason",
            labelnames=["reason"],
            registry=self.registry,
        )

        self.handler_duration_seconds = Histogram(
            "gateway_handler_duration_seconds",
            "Time spent awaiting the event handler in seconds",
            labelnames=["event"],
            buckets=DEFAULT_DURATION_BUCKETS,
            registry=self.registry,
        )

    def record_request(self, outcome: str, status_code: int) -> None:
        self.requests_total.labels(
            outcome=outcome,
            status_code=str(status_code),
        ).inc()

    def record_signature_failure(self, reason: str) -> None:
        self.signature_failures_total.labels(reason=reason).inc()

    def record_handler_duration(self, event: str, duration_seconds: float) -> None:
        self.handler_duration_seconds.labels(event=event).observe(duration_seconds)


# Global metrics instance for the default registry
_default_metrics: Optional[GatewayMetrics] = None


def get_metrics(registry: Optional[CollectorRegistry] = None) -> GatewayMetrics:
    """Get or create the gateway metrics instance.

    Args:
        registry: Optional Prometheus registry. If None, returns the
                  global metrics instance for the default registry.
    """
    global _default_metrics

    if registry is not None:
        return GatewayMetrics(registry=registry)

    if _default_metrics is None:
        _default_metrics = GatewayMetrics()

    return _default_metrics


def generate_metrics_output(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Generate Prometheus metrics output for the /metrics endpoint."""
    target_registry = registry or REGISTRY
    return generate_latest(target_registry)


class MetricsEventEmitter(EventEmitter):
    """Event emitter that updates Prometheus metrics.

    - Every event: increments requests_total
    - AUTH_FAILED: increments signature_failures_total by reason
    - DISPATCHED: records handler duration when present
    """

    def __init__(
        self,
        metrics: Optional[GatewayMetrics] = None,
        registry: Optional[CollectorRegistry] = None,
    ):
        """Initialize the metrics event emitter.

        Args:
            metrics: Optional GatewayMetrics instance. If None, uses
                     the global metrics instance.
            registry: Optional Prometheus registry. Only used if metrics
                      is None.
        """
        if metrics is not None:
            self._metrics = metrics
        else:
            self._metrics = get_metrics(registry)

    @property
    def metrics(self) -> GatewayMetrics:
        return self._metrics

    async def emit(self, event: GatewayEvent) -> None:
        try:
            self._metrics.record_request(event.event_type.value, event.status_code)

            if event.event_type == EventType.AUTH_FAILED:
                self._metrics.record_signature_failure(event.reason or "unknown")
            elif event.event_type == EventType.DISPATCHED:
                duration = event.details.get("duration_seconds")
                if duration is not None:
                    self._metrics.record_handler_duration(
                        event=event.event_name or "unknown",
                        duration_seconds=float(duration),
                    )
        except Exception as e:
            logger.error(
                "Failed to update metrics for event %s: %s",
                event.event_type.value,
                str(e),
                extra={
                    "event_type": event.event_type.value,
                    "error": str(e),
                },
            )
