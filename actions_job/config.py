"""Environment-driven configuration for the dispatcher service.

Each concern gets its own frozen dataclass with a ``from_env()``
constructor. Values are built once by :mod:`actions_job.runtime` and passed
into the components that need them; nothing reads configuration from
module-level state.

Usage
-----
Load the complete configuration:

>>> import os
>>> os.environ["ACTIONS_JOB_WEBHOOK_SECRET"] = "s3cr3t"
>>> os.environ["ACTIONS_JOB_GITHUB_TOKEN"] = "ghs_example"
>>> config = AppConfig.from_env()
>>> config.dispatch.ready_timeout_s
5.0

"""

from __future__ import annotations

import dataclasses as dc
import os

_ENV_PREFIX = "ACTIONS_JOB_"
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})

# Default configuration values - single source of truth
_DEFAULT_GITHUB_API_URL = "https://api.github.com"
_DEFAULT_GITHUB_TIMEOUT_S = 5.0
_DEFAULT_CLOUD_RUN_ENDPOINT = "https://{region}-run.googleapis.com"
_DEFAULT_CLOUD_RUN_TIMEOUT_S = 10.0
_DEFAULT_DISPATCH_TIMEOUT_S = 10.0
_DEFAULT_READY_TIMEOUT_S = 5.0

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


class ConfigError(ValueError):
    """Raised when an environment variable holds an invalid value."""

    def __init__(self, variable: str, reason: str) -> None:
        """Record the offending variable alongside the reason."""
        self.variable = variable
        self.reason = reason
        super().__init__(f"{variable}: {reason}")

    @classmethod
    def missing(cls, variable: str) -> ConfigError:
        """Return an error for a required variable that is unset or blank."""
        return cls(variable, "is required")

    @classmethod
    def invalid(cls, variable: str, raw: str, expected: str) -> ConfigError:
        """Return an error for a value that cannot be parsed."""
        return cls(variable, f"must be {expected}, got: {raw!r}")


def _env_name(suffix: str) -> str:
    return f"{_ENV_PREFIX}{suffix}"


def _read_required(suffix: str) -> str:
    name = _env_name(suffix)
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigError.missing(name)
    return value


def _read_optional(suffix: str) -> str | None:
    value = os.environ.get(_env_name(suffix), "").strip()
    return value or None


def _read_positive_float(suffix: str, default: float) -> float:
    """Read a positive float env var, falling back to a default."""
    name = _env_name(suffix)
    raw = os.environ.get(name, "")
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError.invalid(name, raw, "a number") from exc
    if value <= 0:
        raise ConfigError.invalid(name, raw, "positive")
    return value


def _read_bool(suffix: str, *, default: bool) -> bool:
    name = _env_name(suffix)
    raw = os.environ.get(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise ConfigError.invalid(name, raw, "a boolean")


def parse_port(raw: str) -> int:
    """Parse and validate a TCP port number string.

    Raises
    ------
    ConfigError
        If ``raw`` is not an integer in the range 1-65535.

    """
    name = _env_name("PORT")
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid(name, raw, "an integer") from exc
    if not (_MIN_PORT <= port <= _MAX_PORT):
        raise ConfigError.invalid(name, raw, f"in range {_MIN_PORT}-{_MAX_PORT}")
    return port


@dc.dataclass(frozen=True, slots=True)
class ServerConfig:
    """Bind and logging settings read by the Granian entrypoint.

    Attributes
    ----------
    host
        Bind address for the ASGI server.
    port
        Listen port for the ASGI server.
    log_level
        Raw log level string, normalised by :func:`configure_logging`.

    """

    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build server settings from ``ACTIONS_JOB_*`` variables.

        None of these variables is required.
        """
        return cls(
            host=_read_optional("HOST") or "0.0.0.0",  # noqa: S104
            port=parse_port(_read_optional("PORT") or "8080"),
            log_level=_read_optional("LOG_LEVEL") or "INFO",
        )


@dc.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Configuration for the GitHub REST contents client."""

    token: str
    api_url: str = _DEFAULT_GITHUB_API_URL
    timeout_s: float = _DEFAULT_GITHUB_TIMEOUT_S
    user_agent: str = "actions-job/0.1"

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Build configuration using the ``ACTIONS_JOB_GITHUB_*`` variables."""
        api_url = _read_optional("GITHUB_API_URL") or _DEFAULT_GITHUB_API_URL
        return cls(
            token=_read_required("GITHUB_TOKEN"),
            api_url=api_url.rstrip("/"),
            timeout_s=_read_positive_float(
                "GITHUB_TIMEOUT_S", _DEFAULT_GITHUB_TIMEOUT_S
            ),
        )


@dc.dataclass(frozen=True, slots=True)
class CloudRunConfig:
    """Configuration for the Cloud Run Admin API client.

    Attributes
    ----------
    endpoint_template
        Endpoint URL; ``{region}`` is substituted with the target region.
    timeout_s
        Per-request timeout in seconds.
    access_token
        Static bearer token. When ``None`` the token is read from the
        metadata server.
    use_metadata_server
        Whether the GCP metadata server may be queried for the default
        project, region and access token.

    """

    endpoint_template: str = _DEFAULT_CLOUD_RUN_ENDPOINT
    timeout_s: float = _DEFAULT_CLOUD_RUN_TIMEOUT_S
    access_token: str | None = None
    use_metadata_server: bool = False

    def endpoint_for(self, region: str) -> str:
        """Return the Admin API base URL for ``region``."""
        return self.endpoint_template.format(region=region).rstrip("/")

    @classmethod
    def from_env(cls) -> CloudRunConfig:
        """Build configuration using the ``ACTIONS_JOB_*`` Cloud Run variables."""
        return cls(
            endpoint_template=_read_optional("CLOUD_RUN_ENDPOINT")
            or _DEFAULT_CLOUD_RUN_ENDPOINT,
            timeout_s=_read_positive_float(
                "CLOUD_RUN_TIMEOUT_S", _DEFAULT_CLOUD_RUN_TIMEOUT_S
            ),
            access_token=_read_optional("GCP_ACCESS_TOKEN"),
            use_metadata_server=_read_bool("USE_METADATA_SERVER", default=False),
        )


@dc.dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Knobs for the dispatch transaction.

    Attributes
    ----------
    dispatch_timeout_s
        Overall deadline for handling one event, fetch through start.
    ready_timeout_s
        Deadline for the readiness wait after create or update.
    default_project
        Target project used when the labels do not name one.
    default_region
        Target region used when the labels do not name one.

    """

    dispatch_timeout_s: float = _DEFAULT_DISPATCH_TIMEOUT_S
    ready_timeout_s: float = _DEFAULT_READY_TIMEOUT_S
    default_project: str | None = None
    default_region: str | None = None

    @classmethod
    def from_env(cls) -> DispatchConfig:
        """Build dispatch settings from ``ACTIONS_JOB_*`` variables."""
        return cls(
            dispatch_timeout_s=_read_positive_float(
                "DISPATCH_TIMEOUT_S", _DEFAULT_DISPATCH_TIMEOUT_S
            ),
            ready_timeout_s=_read_positive_float(
                "READY_TIMEOUT_S", _DEFAULT_READY_TIMEOUT_S
            ),
            default_project=_read_optional("DEFAULT_PROJECT"),
            default_region=_read_optional("DEFAULT_REGION"),
        )


@dc.dataclass(frozen=True, slots=True)
class AppConfig:
    """Complete service configuration.

    ``webhook_secret`` verifies GitHub delivery signatures.
    """

    webhook_secret: str
    server: ServerConfig
    github: GitHubConfig
    cloud_run: CloudRunConfig
    dispatch: DispatchConfig

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load every configuration section from the environment.

        Raises
        ------
        ConfigError
            If a required variable is missing or any value is invalid.

        """
        return cls(
            webhook_secret=_read_required("WEBHOOK_SECRET"),
            server=ServerConfig.from_env(),
            github=GitHubConfig.from_env(),
            cloud_run=CloudRunConfig.from_env(),
            dispatch=DispatchConfig.from_env(),
        )


__all__ = [
    "AppConfig",
    "CloudRunConfig",
    "ConfigError",
    "DispatchConfig",
    "GitHubConfig",
    "ServerConfig",
    "parse_port",
]
