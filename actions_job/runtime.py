"""Runtime entrypoint for the Cloud Run webhook receiver.

``create_app`` is the Granian factory: it loads :class:`AppConfig` from the
environment, builds the GitHub and Cloud Run clients and the dispatch
controller, and returns the Falcon ASGI application. ``main`` configures
logging and serves the factory with Granian.

Configuration is driven by ``ACTIONS_JOB_*`` environment variables; see
:mod:`actions_job.config` for the full list. The most important are:

- ``ACTIONS_JOB_HOST``: Bind address (default ``0.0.0.0``)
- ``ACTIONS_JOB_PORT``: Listen port (default ``8080``)
- ``ACTIONS_JOB_LOG_LEVEL``: Log level (default ``INFO``)
- ``ACTIONS_JOB_WEBHOOK_SECRET``: Webhook HMAC secret (required)
- ``ACTIONS_JOB_GITHUB_TOKEN``: GitHub token (required)

Run the service directly with ``python -m actions_job.runtime``.
"""

from __future__ import annotations

import typing as typ

from actions_job.config import AppConfig, ConfigError, ServerConfig
from actions_job.logging import (
    DEFAULT_LOG_LEVEL,
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

    from actions_job.cloudrun.metadata import AccessTokenProvider, MetadataClient
    from actions_job.dispatch.service import WorkflowJobController

__all__ = ["ClientShutdown", "build_controller", "create_app", "main"]

logger = get_logger(__name__)


class _Closeable(typ.Protocol):
    async def aclose(self) -> None: ...


class ClientShutdown:
    """Falcon middleware closing HTTP clients when the server shuts down."""

    def __init__(self, clients: list[_Closeable]) -> None:
        """Store the clients to close."""
        self._clients = clients

    async def process_shutdown(self, _scope: object, _event: object) -> None:
        """Close every client, in reverse creation order."""
        for client in reversed(self._clients):
            await client.aclose()


def _token_provider(
    config: AppConfig, metadata: MetadataClient | None
) -> AccessTokenProvider:
    from actions_job.cloudrun.metadata import (
        MetadataTokenProvider,
        StaticTokenProvider,
    )

    if config.cloud_run.access_token:
        return StaticTokenProvider(config.cloud_run.access_token)
    if metadata is None:
        raise ConfigError.missing("ACTIONS_JOB_GCP_ACCESS_TOKEN")
    return MetadataTokenProvider(metadata)


def build_controller(
    config: AppConfig,
) -> tuple[WorkflowJobController, list[_Closeable]]:
    """Build the dispatch controller and the HTTP clients it owns.

    Raises
    ------
    ConfigError
        If no Cloud Run access token is configured and the metadata server
        is disabled.

    """
    from actions_job.cloudrun.client import CloudRunJobsClient
    from actions_job.cloudrun.metadata import MetadataClient
    from actions_job.dispatch.dispatcher import JobDispatcher
    from actions_job.dispatch.observability import DispatchEventLogger
    from actions_job.dispatch.service import WorkflowJobController
    from actions_job.dispatch.targets import TargetResolver
    from actions_job.github.client import GitHubContentsClient

    metadata = MetadataClient() if config.cloud_run.use_metadata_server else None
    token_provider = _token_provider(config, metadata)

    github = GitHubContentsClient(config.github)
    jobs = CloudRunJobsClient(config.cloud_run, token_provider)
    event_logger = DispatchEventLogger()

    controller = WorkflowJobController(
        fetcher=github,
        dispatcher=JobDispatcher(
            jobs,
            ready_timeout_s=config.dispatch.ready_timeout_s,
            event_logger=event_logger,
        ),
        resolver=TargetResolver(
            default_project=config.dispatch.default_project,
            default_region=config.dispatch.default_region,
            metadata=metadata,
        ),
        dispatch_timeout_s=config.dispatch.dispatch_timeout_s,
        event_logger=event_logger,
    )
    clients: list[_Closeable] = [github, jobs]
    if metadata is not None:
        clients.append(metadata)
    return controller, clients


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from environment configuration.

    Raises
    ------
    SystemExit
        If the environment configuration is incomplete or invalid.

    """
    from actions_job.api.app import AppDependencies
    from actions_job.api.app import create_app as _create_api_app

    try:
        config = AppConfig.from_env()
        controller, clients = build_controller(config)
    except ConfigError as exc:
        # Use error() not exception() - validation failures need no traceback
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    app = _create_api_app(
        AppDependencies(
            controller=controller,
            webhook_secret=config.webhook_secret,
        )
    )
    app.add_middleware(ClientShutdown(clients))
    return app


def main() -> None:
    """Start the webhook receiver using Granian.

    Bind address, port and log level come from :class:`ServerConfig`. The
    remaining configuration is loaded by the :func:`create_app` factory.
    """
    from granian import Granian
    from granian.constants import Interfaces

    try:
        settings = ServerConfig.from_env()
    except ConfigError as exc:
        configure_logging(DEFAULT_LOG_LEVEL)
        log_error(logger, "Invalid server configuration: %s", exc)
        raise SystemExit(1) from exc

    normalized_level, invalid_level = configure_logging(settings.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid ACTIONS_JOB_LOG_LEVEL %r, falling back to %s",
            settings.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting actions-job dispatcher on %s:%d (log_level=%s)",
        settings.host,
        settings.port,
        normalized_level,
    )

    server = Granian(
        "actions_job.runtime:create_app",
        address=settings.host,
        port=settings.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
