"""Health probe resources.

Both probes are stateless and never touch GitHub or Cloud Run, so they stay
cheap enough for frequent platform checks.

Usage
-----
Register health endpoints on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(dispatch_enabled=True))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reporting whether webhook dispatch is wired up.

    A service started without a controller still answers probes but cannot
    accept deliveries, so it reports ``503`` until configured.

    Parameters
    ----------
    dispatch_enabled
        Whether ``POST /github/events`` is registered.

    """

    def __init__(self, *, dispatch_enabled: bool) -> None:
        """Record whether the webhook route is available."""
        self._dispatch_enabled = dispatch_enabled

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        if self._dispatch_enabled:
            resp.media = {"status": "ready"}
            resp.status = HTTPStatus.OK
        else:
            resp.media = {"status": "unconfigured"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
