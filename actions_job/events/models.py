"""Typed models for inbound GitHub ``workflow_job`` webhook deliveries.

Only the fields the dispatcher reads are declared; everything else in the
payload is ignored during decoding.
"""

from __future__ import annotations

import msgspec

from actions_job.common.slug import parse_repo_slug

QUEUED_ACTION = "queued"


class EventRepository(msgspec.Struct, kw_only=True, frozen=True):
    """Repository descriptor attached to the event.

    Attributes
    ----------
    full_name : str
        Repository slug in ``owner/name`` format.
    private : bool
        Whether the repository is private.
    fork : bool
        Whether the repository is a fork.

    """

    full_name: str
    private: bool = False
    fork: bool = False

    @property
    def owner(self) -> str:
        """Return the owner segment of the slug."""
        return parse_repo_slug(self.full_name)[0]

    @property
    def name(self) -> str:
        """Return the repository name segment of the slug."""
        return parse_repo_slug(self.full_name)[1]


class WorkflowJob(msgspec.Struct, kw_only=True, frozen=True):
    """The queued job as described by GitHub Actions."""

    head_sha: str
    labels: tuple[str, ...] = ()
    id: int | None = None
    run_id: int | None = None
    name: str | None = None


class WorkflowJobEvent(msgspec.Struct, kw_only=True, frozen=True):
    """A ``workflow_job`` webhook delivery.

    Instances are immutable and constructed once per request.
    """

    action: str
    repository: EventRepository
    workflow_job: WorkflowJob

    @property
    def labels(self) -> tuple[str, ...]:
        """Return the ordered job labels."""
        return self.workflow_job.labels

    @property
    def head_sha(self) -> str:
        """Return the revision the job was queued for."""
        return self.workflow_job.head_sha


class InvalidEventPayloadError(ValueError):
    """Raised when a webhook body cannot be decoded into an event."""

    @classmethod
    def undecodable(cls, detail: str) -> InvalidEventPayloadError:
        """Return an error describing why decoding failed."""
        return cls(f"invalid workflow_job payload: {detail}")


def decode_workflow_job_event(payload: bytes) -> WorkflowJobEvent:
    """Decode raw JSON into a :class:`WorkflowJobEvent`.

    Raises
    ------
    InvalidEventPayloadError
        If the payload is not valid JSON, misses required fields, or carries
        a repository name that is not an ``owner/name`` slug.

    """
    try:
        event = msgspec.json.decode(payload, type=WorkflowJobEvent)
    except msgspec.DecodeError as exc:
        raise InvalidEventPayloadError.undecodable(str(exc)) from exc

    try:
        parse_repo_slug(event.repository.full_name)
    except ValueError as exc:
        raise InvalidEventPayloadError.undecodable(str(exc)) from exc
    return event
