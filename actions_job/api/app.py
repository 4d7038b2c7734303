"""Application factory for the webhook receiver Falcon ASGI application.

Usage
-----
Create a probes-only app (no dispatch)::

    app = create_app()

Create the full app::

    from actions_job.api.app import AppDependencies, create_app

    deps = AppDependencies(controller=controller, webhook_secret=secret)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from actions_job.api.errors import (
    InvalidWebhookError,
    UnsupportedEventError,
    handle_invalid_webhook,
    handle_unsupported_event,
)
from actions_job.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from actions_job.dispatch.service import WorkflowJobController

__all__ = ["WEBHOOK_ROUTE", "AppDependencies", "create_app"]

WEBHOOK_ROUTE = "/github/events"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    controller
        Dispatch transaction invoked for ``workflow_job`` deliveries.
    webhook_secret
        Shared secret used to verify delivery signatures.

    """

    controller: WorkflowJobController | None = None
    webhook_secret: str | None = None


def _has_dispatch_deps(deps: AppDependencies | None) -> bool:
    """Return True when deps provide both a controller and a secret."""
    return deps is not None and deps.controller is not None and bool(
        deps.webhook_secret
    )


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health`` and ``/ready`` are always registered. ``POST /github/events``
    is registered when *dependencies* provide a controller and a webhook
    secret.

    Parameters
    ----------
    dependencies
        Optional application dependencies.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()
    dispatch_enabled = _has_dispatch_deps(dependencies)

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(dispatch_enabled=dispatch_enabled))

    if dispatch_enabled and dependencies is not None:
        from actions_job.api.webhook.resources import GitHubWebhookResource

        controller = typ.cast("WorkflowJobController", dependencies.controller)
        secret = typ.cast("str", dependencies.webhook_secret)
        app.add_route(WEBHOOK_ROUTE, GitHubWebhookResource(controller, secret))

    app.add_error_handler(InvalidWebhookError, handle_invalid_webhook)
    app.add_error_handler(UnsupportedEventError, handle_unsupported_event)

    return app
