"""femtologging helpers shared by the dispatcher service.

femtologging records carry a single pre-rendered string, so every helper
here formats its message before handing it over. Dispatch lifecycle events
are rendered as ``[event.type] key=value ...`` lines by :func:`format_event`
so log queries can match on individual fields.

Example:
>>> from actions_job.logging import format_event, get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Listening on %s:%d", "0.0.0.0", 8080)
>>> format_event("dispatch.job.ready", job="runner", waited_seconds=0.25)
'[dispatch.job.ready] job=runner waited_seconds=0.250'

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DEFAULT_LOG_LEVEL = "INFO"


class LogLevel(enum.StrEnum):
    """Level names accepted by femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return ``(level, invalid)`` for a raw ``ACTIONS_JOB_LOG_LEVEL`` value.

    Unknown or blank values fall back to ``INFO`` and set ``invalid`` so the
    caller can warn once logging is configured.
    """
    normalized = (level or "").strip().upper()
    if normalized in LogLevel.__members__:
        return (normalized, False)
    return (DEFAULT_LOG_LEVEL, True)


def configure_logging(level: str, *, force: bool = False) -> tuple[str, bool]:
    """Install the femtologging root handler at the normalized ``level``.

    Returns the level actually applied and whether ``level`` had to be
    replaced by the default. ``force`` drops handlers installed earlier.
    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


class SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _render_value(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def render_fields(fields: cabc.Mapping[str, object]) -> str:
    """Render ``fields`` as space-separated ``key=value`` pairs.

    Floats use three decimals and ``None`` renders as ``-``. Pairs keep the
    mapping's order.
    """
    return " ".join(f"{key}={_render_value(value)}" for key, value in fields.items())


def format_event(event_type: str, /, **fields: object) -> str:
    """Return ``[event_type] key=value ...`` for a structured log line."""
    if not fields:
        return f"[{event_type}]"
    return f"[{event_type}] {render_fields(fields)}"


def log_at(
    logger: SupportsLog,
    level: LogLevel | str,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log ``template`` at ``level``, interpolating ``args`` percent-style.

    A template without ``args`` is logged verbatim, so pre-rendered text
    containing ``%`` is safe to pass.
    """
    logger.log(
        str(level),
        template % args if args else template,
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(logger: SupportsLog, template: str, *args: object) -> None:
    """Log a DEBUG message."""
    log_at(logger, LogLevel.DEBUG, template, *args)


def log_info(
    logger: SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message."""
    log_at(logger, LogLevel.INFO, template, *args, exc_info=exc_info)


def log_warning(
    logger: SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message, optionally with ``exc_info`` attached."""
    log_at(logger, LogLevel.WARNING, template, *args, exc_info=exc_info)


def log_error(
    logger: SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message; pass ``exc_info`` to attach a traceback."""
    log_at(logger, LogLevel.ERROR, template, *args, exc_info=exc_info)


__all__ = [
    "DEFAULT_LOG_LEVEL",
    "LogLevel",
    "SupportsLog",
    "configure_logging",
    "format_event",
    "get_logger",
    "log_at",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_level",
    "render_fields",
]
