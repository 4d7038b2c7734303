"""Webhook delivery exceptions and their Falcon error handlers.

Usage
-----
Register the handlers on the Falcon app::

    app.add_error_handler(InvalidWebhookError, handle_invalid_webhook)
    app.add_error_handler(UnsupportedEventError, handle_unsupported_event)

"""

from __future__ import annotations

import typing as typ

import falcon

from actions_job.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = [
    "InvalidWebhookError",
    "UnsupportedEventError",
    "handle_invalid_webhook",
    "handle_unsupported_event",
]

logger = get_logger(__name__)


class InvalidWebhookError(Exception):
    """Raised for deliveries that fail validation; maps to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the failure.
    field
        Header or body field that failed validation, when known.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


class UnsupportedEventError(Exception):
    """Raised for webhook event types the service does not handle."""

    def __init__(self, event_type: str | None) -> None:
        """Record the unsupported ``X-GitHub-Event`` value."""
        self.event_type = event_type
        super().__init__(f"unsupported webhook event: {event_type!r}")


async def handle_invalid_webhook(
    _req: Request,
    resp: Response,
    ex: InvalidWebhookError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidWebhookError`` to an HTTP 400 JSON response."""
    log_warning(logger, "Rejected webhook delivery: %s", ex)
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid webhook delivery",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_unsupported_event(
    _req: Request,
    resp: Response,
    ex: UnsupportedEventError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UnsupportedEventError`` to an HTTP 404 JSON response."""
    log_warning(logger, "Received unsupported webhook event %r", ex.event_type)
    resp.status = falcon.HTTP_404
    resp.media = {
        "title": "Unsupported event",
        "description": str(ex),
    }
