"""FastAPI application entry point for the webhook gateway.

The application exposes one webhook route (``GATEWAY_WEBHOOK_PATH``) plus
health, readiness and Prometheus metrics endpoints. All webhook logic lives
in IngressDispatcher; this module only adapts Starlette requests to it and
its responses back.

Run locally with:

    uvicorn src.gateway.main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST

from .config import GatewaySettings, get_settings
from .events.emitter import EventEmitter, create_event_emitter
from .events.metrics import generate_metrics_output
from .webhook.dispatcher import IngressDispatcher, create_dispatcher
from .webhook.handler import EventHandler, load_event_handler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _log_configuration(settings: GatewaySettings) -> None:
    """Log configuration values. The webhook secret is never logged."""
    logger.info("Gateway configuration:")
    logger.info("  Webhook Path: %s", settings.webhook_path)
    logger.info("  Webhook Secret: %s", settings.github_webhook_secret)
    logger.info("  Signature Algorithm: %s", settings.signature_algorithm)
    logger.info("  Signature Header: %s", settings.signature_header)
    logger.info("  Event Header: %s", settings.event_header)
    logger.info("  Delivery Header: %s", settings.delivery_header)
    logger.info("  Handler: %s", settings.handler or "<builtin github>")
    logger.info("  Event Sinks: %s", ", ".join(settings.event_sinks) or "<none>")
    logger.info("  Host: %s", settings.host)
    logger.info("  Port: %s", settings.port)


def create_app(
    settings: Optional[GatewaySettings] = None,
    handler: Optional[EventHandler] = None,
    emitter: Optional[EventEmitter] = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Gateway settings. Loaded from the environment if omitted.
        handler: Event handler. Resolved from ``settings.handler`` if omitted.
        emitter: Event emitter. Built from ``settings.event_sinks`` if omitted.

    Raises:
        pydantic.ValidationError: If settings are loaded and invalid.
        HandlerLoadError: If the configured handler cannot be imported.
    """
    settings = settings or get_settings()
    handler = handler or load_event_handler(settings.handler)
    emitter = emitter or create_event_emitter(settings.event_sinks)
    dispatcher = create_dispatcher(settings, handler, emitter)

    logging.getLogger("src.gateway").setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Webhook gateway starting up...")
        _log_configuration(settings)
        yield
        logger.info("Webhook gateway shutting down...")
        await emitter.close()

    app = FastAPI(
        title="Webhook Gateway",
        description="Authenticated ingress for GitHub webhook deliveries",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.dispatcher = dispatcher

    async def receive_webhook(request: Request) -> Response:
        """Webhook receiver endpoint.

        Accepts every method so that non-POST requests get the gateway's
        JSON 405 body rather than the framework default.
        """
        gateway: IngressDispatcher = request.app.state.dispatcher
        result = await gateway.dispatch(request.method, request.headers, request.body)
        return Response(
            content=result.content,
            status_code=result.status_code,
            media_type=result.media_type,
        )

    app.add_route(
        settings.webhook_path,
        receive_webhook,
        include_in_schema=False,
        name="receive_webhook",
    )

    @app.get("/health")
    async def health():
        """Liveness probe endpoint."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready():
        """Readiness probe endpoint."""
        status = "ready" if getattr(app.state, "dispatcher", None) else "not_ready"
        return {"status": status}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(generate_metrics_output(), media_type=CONTENT_TYPE_LATEST)

    return app


if __name__ == "__main__":
    import uvicorn

    dev_settings = get_settings()
    uvicorn.run(
        "src.gateway.main:create_app",
        factory=True,
        host=dev_settings.host,
        port=dev_settings.port,
    )
