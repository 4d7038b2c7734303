"""Typed failures of the dispatch transaction.

Every stage raises a :class:`DispatchError` subclass carrying a
machine-readable :class:`DispatchErrorKind`, the stage that failed and,
once known, the job identity. :class:`WorkflowJobController` turns them into
:class:`~actions_job.dispatch.models.DispatchOutcome` values.
"""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    from .models import JobIdentity


class DispatchErrorKind(enum.StrEnum):
    """Machine-readable failure kinds."""

    NON_TARGET = "non_target_event"
    SECURITY_VIOLATION = "security_violation"
    LABEL_VALIDATION = "label_validation"
    UPSTREAM_FETCH = "upstream_fetch"
    MANIFEST_PARSE = "manifest_parse"
    REMOTE_STATE = "remote_state"
    READINESS_TIMEOUT = "readiness_timeout"


class DispatchStage(enum.StrEnum):
    """Stages of the dispatch transaction, in execution order."""

    GATE = "gate"
    LABELS = "labels"
    FETCH = "fetch"
    TRANSFORM = "transform"
    PROBE = "probe"
    RECONCILE = "reconcile"
    AWAIT_READY = "await_ready"
    START = "start"


class DispatchError(Exception):
    """Base class for dispatch failures and rejections.

    Attributes
    ----------
    stage
        Stage at which the error was raised.
    identity
        Job identity, when the failure happened after it was derived.

    """

    kind: typ.ClassVar[DispatchErrorKind]
    default_stage: typ.ClassVar[DispatchStage] = DispatchStage.GATE

    def __init__(
        self,
        message: str,
        *,
        stage: DispatchStage | None = None,
        identity: JobIdentity | None = None,
    ) -> None:
        """Record the failing stage and identity alongside the message."""
        super().__init__(message)
        self.stage = stage or self.default_stage
        self.identity = identity

    @property
    def is_rejection(self) -> bool:
        """Return True for events that are declined rather than failed."""
        return isinstance(self, (NonTargetEvent, SecurityViolation))


class NonTargetEvent(DispatchError):
    """The event does not qualify for a dispatch; nothing to do."""

    kind = DispatchErrorKind.NON_TARGET

    @classmethod
    def not_queued(cls, action: str) -> NonTargetEvent:
        """Return a rejection for actions other than ``queued``."""
        return cls(f'event is not "queued" action: {action!r}')

    @classmethod
    def missing_capability_label(cls, marker: str) -> NonTargetEvent:
        """Return a rejection for jobs without the runner capability label."""
        return cls(f'label "{marker}" is not found in labels')


class SecurityViolation(DispatchError):
    """The event comes from a repository self-hosted runners must not serve."""

    kind = DispatchErrorKind.SECURITY_VIOLATION

    @classmethod
    def public_repository(cls, slug: str) -> SecurityViolation:
        """Return a rejection for public repositories."""
        return cls(
            f"skipped {slug}: using self-hosted runners with public "
            "repositories is not allowed"
        )

    @classmethod
    def forked_repository(cls, slug: str) -> SecurityViolation:
        """Return a rejection for forks."""
        return cls(
            f"skipped {slug}: using self-hosted runners with forked "
            "repositories is not allowed"
        )


class LabelValidationError(NonTargetEvent):
    """The runner labels do not describe a dispatchable job."""

    kind = DispatchErrorKind.LABEL_VALIDATION
    default_stage = DispatchStage.LABELS

    @classmethod
    def missing_manifest_path(cls) -> LabelValidationError:
        """Return an error when no ``job-manifest=`` label was given."""
        return cls("validation error: job manifest path label is required")

    @classmethod
    def unresolved_target(cls, field: str) -> LabelValidationError:
        """Return an error when the target project or region is unknown."""
        return cls(
            f"validation error: {field} is not set by labels, configuration, "
            "or the metadata server"
        )


class UpstreamFetchError(DispatchError):
    """The manifest could not be downloaded."""

    kind = DispatchErrorKind.UPSTREAM_FETCH
    default_stage = DispatchStage.FETCH

    @classmethod
    def from_exception(
        cls, location: str, revision: str, exc: Exception
    ) -> UpstreamFetchError:
        """Wrap a fetcher failure with the requested location."""
        return cls(
            f"failed to download job manifest {location}@{revision}: {exc}"
        )


class ManifestParseError(DispatchError):
    """The manifest is not a usable job definition."""

    kind = DispatchErrorKind.MANIFEST_PARSE
    default_stage = DispatchStage.TRANSFORM

    @classmethod
    def invalid_yaml(cls, detail: str) -> ManifestParseError:
        """Return an error for YAML syntax problems."""
        return cls(f"failed to parse job manifest YAML: {detail}")

    @classmethod
    def schema_mismatch(cls, detail: str) -> ManifestParseError:
        """Return an error for documents that do not match the job schema."""
        return cls(f"job manifest does not match the job schema: {detail}")

    @classmethod
    def empty(cls) -> ManifestParseError:
        """Return an error for empty manifests."""
        return cls("job manifest is empty")

    @classmethod
    def missing_job_name(cls) -> ManifestParseError:
        """Return an error when ``metadata.name`` is absent."""
        return cls("job manifest does not set metadata.name")

    @classmethod
    def no_containers(cls) -> ManifestParseError:
        """Return an error when the task template declares no container."""
        return cls("job manifest declares no containers")


class RemoteStateError(DispatchError):
    """A job platform call failed for a reason other than not-found."""

    kind = DispatchErrorKind.REMOTE_STATE
    default_stage = DispatchStage.PROBE

    @classmethod
    def stage_failed(
        cls, stage: DispatchStage, identity: JobIdentity, exc: Exception
    ) -> RemoteStateError:
        """Wrap a platform failure with the stage and job identity."""
        return cls(
            f"{stage} failed for {identity}: {exc}",
            stage=stage,
            identity=identity,
        )

    @classmethod
    def deadline_exceeded(
        cls,
        stage: DispatchStage,
        identity: JobIdentity | None,
        timeout_s: float,
    ) -> RemoteStateError:
        """Return an error for a dispatch that outlived its overall deadline."""
        target = str(identity) if identity is not None else "event"
        return cls(
            f"dispatch deadline of {timeout_s:g}s exceeded during {stage} "
            f"for {target}",
            stage=stage,
            identity=identity,
        )


class ReadinessTimeout(DispatchError):
    """The job did not report Ready before the readiness deadline."""

    kind = DispatchErrorKind.READINESS_TIMEOUT
    default_stage = DispatchStage.AWAIT_READY

    @classmethod
    def after(
        cls, identity: JobIdentity, timeout_s: float, attempts: int
    ) -> ReadinessTimeout:
        """Return a timeout naming the job and the number of polls made."""
        return cls(
            f"job {identity} not ready after {timeout_s:g}s ({attempts} polls)",
            identity=identity,
        )
