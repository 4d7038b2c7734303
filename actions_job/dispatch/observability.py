"""Emit structured observability events for the dispatch transaction.

Usage
-----
>>> event_logger = DispatchEventLogger()
>>> event_logger.log_job_started(identity, execution="runner-abc12")

"""

from __future__ import annotations

import enum
import typing as typ

from actions_job.logging import LogLevel, format_event, get_logger, log_at

from .errors import SecurityViolation
from .models import ReconcileAction

if typ.TYPE_CHECKING:
    from actions_job.events import WorkflowJobEvent
    from actions_job.logging import SupportsLog

    from .errors import DispatchError
    from .models import JobIdentity

logger = get_logger(__name__)


def _job(identity: JobIdentity) -> dict[str, str]:
    return {
        "project": identity.project,
        "region": identity.region,
        "job": identity.name,
    }


class DispatchEventType(enum.StrEnum):
    """Structured log event types for dispatches."""

    EVENT_REJECTED = "dispatch.event.rejected"
    JOB_CREATED = "dispatch.job.created"
    JOB_UPDATED = "dispatch.job.updated"
    JOB_READY = "dispatch.job.ready"
    JOB_STARTED = "dispatch.job.started"
    DISPATCH_FAILED = "dispatch.failed"


class DispatchEventLogger:
    """Emit structured dispatch events via femtologging.

    Security violations are logged at WARNING, other rejections at DEBUG,
    progress at INFO and failures at ERROR.
    """

    def __init__(self, target: SupportsLog | None = None) -> None:
        """Use ``target`` instead of the module logger when given."""
        self._logger = target or logger

    def log_rejected(self, event: WorkflowJobEvent, error: DispatchError) -> None:
        """Log an event that was declined before any remote call."""
        level = (
            LogLevel.WARNING if isinstance(error, SecurityViolation) else LogLevel.DEBUG
        )
        log_at(
            self._logger,
            level,
            format_event(
                DispatchEventType.EVENT_REJECTED,
                repo_slug=event.repository.full_name,
                action=event.action,
                rejection_kind=error.kind,
                reason=str(error),
            ),
        )

    def log_job_reconciled(
        self, identity: JobIdentity, action: ReconcileAction
    ) -> None:
        """Log the create or replace of a job."""
        event_type = (
            DispatchEventType.JOB_CREATED
            if action is ReconcileAction.CREATED
            else DispatchEventType.JOB_UPDATED
        )
        log_at(
            self._logger, LogLevel.INFO, format_event(event_type, **_job(identity))
        )

    def log_job_ready(
        self, identity: JobIdentity, *, polls: int, waited_s: float
    ) -> None:
        """Log that the job reported Ready."""
        log_at(
            self._logger,
            LogLevel.INFO,
            format_event(
                DispatchEventType.JOB_READY,
                **_job(identity),
                polls=polls,
                waited_seconds=waited_s,
            ),
        )

    def log_job_started(self, identity: JobIdentity, *, execution: str) -> None:
        """Log a started execution."""
        log_at(
            self._logger,
            LogLevel.INFO,
            format_event(
                DispatchEventType.JOB_STARTED, **_job(identity), execution=execution
            ),
        )

    def log_failed(
        self,
        event: WorkflowJobEvent,
        error: DispatchError,
        *,
        duration_s: float,
    ) -> None:
        """Log a failed dispatch with its error kind and stage."""
        log_at(
            self._logger,
            LogLevel.ERROR,
            format_event(
                DispatchEventType.DISPATCH_FAILED,
                repo_slug=event.repository.full_name,
                job=error.identity,
                error_kind=error.kind,
                stage=error.stage,
                duration_seconds=duration_s,
                error_message=str(error),
            ),
            exc_info=error,
        )
