"""Admission rules deciding whether an event may reach a self-hosted runner."""

from __future__ import annotations

import typing as typ

from actions_job.events import QUEUED_ACTION

from .errors import NonTargetEvent, SecurityViolation

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from actions_job.events import WorkflowJobEvent

CAPABILITY_LABEL = "self-hosted"


def has_capability_label(labels: cabc.Iterable[str], marker: str) -> bool:
    """Return True when ``labels`` contain ``marker``, ignoring case."""
    wanted = marker.casefold()
    return any(label.casefold() == wanted for label in labels)


def admit(
    event: WorkflowJobEvent, *, marker: str = CAPABILITY_LABEL
) -> WorkflowJobEvent:
    """Return ``event`` when it qualifies for a dispatch.

    Rules are evaluated in order and the first failure wins, so a public or
    forked repository is always reported as a security violation whatever the
    action or labels.

    Raises
    ------
    SecurityViolation
        If the repository is public or a fork.
    NonTargetEvent
        If the action is not ``queued`` or the capability label is absent.

    """
    repository = event.repository
    if not repository.private:
        raise SecurityViolation.public_repository(repository.full_name)
    if repository.fork:
        raise SecurityViolation.forked_repository(repository.full_name)
    if event.action != QUEUED_ACTION:
        raise NonTargetEvent.not_queued(event.action)
    if not has_capability_label(event.labels, marker):
        raise NonTargetEvent.missing_capability_label(marker)
    return event
