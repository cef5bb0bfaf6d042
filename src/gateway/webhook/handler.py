"""Event handlers invoked after a webhook has been authenticated.

The dispatcher only knows the EventHandler contract: one awaitable call per
request taking the event name, the parsed JSON payload and the gateway
settings, returning something JSON-serializable. Which handler runs is a
deployment decision made through the ``handler`` setting.

GitHub Webhook Payload Structure (push event, trimmed):
{
  "ref": "refs/heads/main",
  "commits": [{...}, {...}],
  "pusher": {"name": "alice"}
}

GitHub Webhook Payload Structure (pull_request event, trimmed):
{
  "action": "opened",
  "pull_request": {"number": 7, "title": "Fix bug"}
}
"""

import importlib
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from src.gateway.config import GatewaySettings
from src.gateway.webhook.models import HandlerResult

logger = logging.getLogger(__name__)


BRANCH_REF_PREFIX = "refs/heads/"

HandlerCallback = Callable[[str, Any, GatewaySettings], Awaitable[Any]]


class HandlerLoadError(Exception):
    """Raised when the configured event handler cannot be loaded.

    Attributes:
        import_string: The ``module:attribute`` string that failed.
        message: Human-readable error message.
    """

    def __init__(self, import_string: str, message: str):
        self.import_string = import_string
        self.message = message
        super().__init__(f"Cannot load event handler {import_string!r}: {message}")


class EventHandler(ABC):
    """Business logic run for each verified webhook event.

    Implementations may await I/O; the dispatcher waits for the result
    before responding. Nothing is shared between calls unless the
    implementation chooses to.
    """

    @abstractmethod
    async def handle(self, event_name: str, payload: Any, env: GatewaySettings) -> Any:
        """Handle one event.

        Args:
            event_name: Sender event name from the event header.
            payload: Parsed JSON payload (dict, list or scalar).
            env: Gateway settings.

        Returns:
            A JSON-serializable value (or pydantic model) sent back as the
            response body.
        """


class CallbackEventHandler(EventHandler):
    """Adapts a plain async function to the EventHandler contract."""

    def __init__(self, callback: HandlerCallback):
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._callback = callback

    async def handle(self, event_name: str, payload: Any, env: GatewaySettings) -> Any:
        result = self._callback(event_name, payload, env)
        if inspect.isawaitable(result):
            result = await result
        return result


class GitHubEventHandler(EventHandler):
    """Reference handler for GitHub events.

    Summarizes ``push`` and ``pull_request`` events and acknowledges
    everything else. Field access is defensive: GitHub payloads vary by
    action, so missing fields produce empty values rather than errors.
    """

    async def handle(
        self, event_name: str, payload: Any, env: GatewaySettings
    ) -> HandlerResult:
        logger.info("Received GitHub event: %s", event_name)

        if event_name == "push":
            return self._handle_push(event_name, payload)

        if event_name == "pull_request":
            return self._handle_pull_request(event_name, payload)

        return HandlerResult(
            status="received",
            message=f"Event {event_name} acknowledged",
            event=event_name,
        )

    def _handle_push(self, event_name: str, payload: Any) -> HandlerResult:
        branch = self._branch_name(_get(payload, "ref"))
        commits = _get(payload, "commits")
        commit_count = len(commits) if isinstance(commits, list) else 0
        pusher = _get(_get(payload, "pusher"), "name")

        logger.info("Push to %s by %s: %d commit(s)", branch, pusher, commit_count)

        return HandlerResult(
            status="success",
            message=f"Processed {commit_count} commit(s) on {branch}",
            event=event_name,
        )

    def _handle_pull_request(self, event_name: str, payload: Any) -> HandlerResult:
        action = _text(_get(payload, "action"))
        pull_request = _get(payload, "pull_request")
        number = _text(_get(pull_request, "number"))
        title = _text(_get(pull_request, "title"))

        logger.info("Pull request #%s %s: %s", number, action, title)

        return HandlerResult(
            status="success",
            message=f"Processed PR #{number} ({action})",
            event=event_name,
        )

    def _branch_name(self, ref: Any) -> str:
        """Strip the ``refs/heads/`` prefix from a push ref.

        Tag refs and other non-branch refs are returned unchanged.
        """
        if not isinstance(ref, str):
            return ""
        if ref.startswith(BRANCH_REF_PREFIX):
            return ref[len(BRANCH_REF_PREFIX):]
        return ref


def _get(data: Any, key: str) -> Any:
    if isinstance(data, dict):
        return data.get(key)
    return None


def _text(value: Any) -> str:
    """Render a scalar payload field, or "" when it is missing or nested."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def load_event_handler(import_string: Optional[str]) -> EventHandler:
    """Resolve the configured event handler.

    Accepts ``module:attribute`` where the attribute is an EventHandler
    instance, an EventHandler subclass (instantiated without arguments),
    or an async callable taking ``(event_name, payload, env)``. An empty
    string selects GitHubEventHandler.

    Raises:
        HandlerLoadError: If the string is malformed, the import fails,
            or the attribute is not a usable handler.
    """
    if not import_string:
        return GitHubEventHandler()

    module_name, sep, attr_path = import_string.partition(":")
    if not sep or not module_name or not attr_path:
        raise HandlerLoadError(import_string, "expected 'module:attribute'")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise HandlerLoadError(import_string, f"import failed: {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise HandlerLoadError(import_string, f"attribute {attr!r} not found") from e

    if isinstance(target, EventHandler):
        handler = target
    elif inspect.isclass(target) and issubclass(target, EventHandler):
        handler = target()
    elif callable(target):
        handler = CallbackEventHandler(target)
    else:
        raise HandlerLoadError(import_string, "not an EventHandler or callable")

    logger.info("Loaded event handler %s from %s", type(handler).__name__, import_string)
    return handler
