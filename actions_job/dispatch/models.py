"""Value types of the dispatch transaction."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from .errors import DispatchStage

if typ.TYPE_CHECKING:
    from .errors import DispatchError


@dc.dataclass(frozen=True, slots=True)
class JobIdentity:
    """Composite key addressing one remote job resource.

    Derived fresh for every dispatch and never cached across requests.
    """

    project: str
    region: str
    name: str

    def __str__(self) -> str:
        """Return ``project/region/name`` for log and error messages."""
        return f"{self.project}/{self.region}/{self.name}"


@dc.dataclass(frozen=True, slots=True)
class JobTarget:
    """Project and region a job is dispatched to."""

    project: str
    region: str

    def identity_for(self, name: str) -> JobIdentity:
        """Return the identity of job ``name`` in this target."""
        return JobIdentity(project=self.project, region=self.region, name=name)


class DispatchState(enum.StrEnum):
    """States of the job dispatcher state machine."""

    ABSENT = "absent"
    PRESENT = "present"
    READY = "ready"
    STARTED = "started"
    FAILED = "failed"


class ReconcileAction(enum.StrEnum):
    """How the remote job was brought in line with the manifest."""

    CREATED = "created"
    UPDATED = "updated"


@dc.dataclass(slots=True)
class DispatchProgress:
    """Mutable record of how far one dispatch has got.

    Shared between the controller and the dispatcher so an overall deadline
    can report the stage that was running when it expired.
    """

    stage: DispatchStage = DispatchStage.GATE
    identity: JobIdentity | None = None
    state: DispatchState | None = None

    def enter(
        self, stage: DispatchStage, identity: JobIdentity | None = None
    ) -> None:
        """Record entry into ``stage``."""
        self.stage = stage
        if identity is not None:
            self.identity = identity


@dc.dataclass(frozen=True, slots=True)
class DispatchResult:
    """Successful end of the state machine: the job was started."""

    identity: JobIdentity
    action: ReconcileAction
    execution: str
    ready_polls: int
    state: DispatchState = DispatchState.STARTED


class OutcomeKind(enum.StrEnum):
    """Discriminator of :data:`DispatchOutcome` variants."""

    REJECTED = "rejected"
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


class RejectionKind(enum.StrEnum):
    """Why an event was declined."""

    NON_TARGET = "non_target"
    SECURITY_VIOLATION = "security_violation"


@dc.dataclass(frozen=True, slots=True)
class Rejected:
    """The event was declined before any remote call was made."""

    rejection: RejectionKind
    reason: str
    kind: typ.ClassVar[OutcomeKind] = OutcomeKind.REJECTED


@dc.dataclass(frozen=True, slots=True)
class Created:
    """A new job was created and an execution started."""

    identity: JobIdentity
    execution: str
    kind: typ.ClassVar[OutcomeKind] = OutcomeKind.CREATED


@dc.dataclass(frozen=True, slots=True)
class Updated:
    """An existing job was replaced and an execution started."""

    identity: JobIdentity
    execution: str
    kind: typ.ClassVar[OutcomeKind] = OutcomeKind.UPDATED


@dc.dataclass(frozen=True, slots=True)
class Failed:
    """The dispatch failed; ``cause`` names the stage and reason."""

    cause: DispatchError
    kind: typ.ClassVar[OutcomeKind] = OutcomeKind.FAILED


type DispatchOutcome = Rejected | Created | Updated | Failed
