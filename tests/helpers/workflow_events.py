"""Builders for ``workflow_job`` events and job manifests used across tests."""

from __future__ import annotations

import hashlib
import hmac
import typing as typ

import msgspec

from actions_job.events import EventRepository, WorkflowJob, WorkflowJobEvent

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DEFAULT_LABELS: tuple[str, ...] = (
    "self-hosted",
    "project=proj1",
    "region=us-central1",
    "job-manifest=.github/job.yaml",
)
WEBHOOK_SECRET = "it's a secret to everybody"

SIMPLE_MANIFEST = """\
apiVersion: run.googleapis.com/v1
kind: Job
metadata:
  name: actions-runner
spec:
  template:
    spec:
      template:
        spec:
          containers:
            - image: acme/actions-job:latest
              env:
                - name: RUNNER_SCOPE
                  value: repo
"""

DOCKER_MANIFEST = """\
apiVersion: run.googleapis.com/v1
kind: Job
metadata:
  name: actions-runner
spec:
  template:
    spec:
      template:
        spec:
          containers:
            - image: acme/actions-job:latest
              env:
                - name: DOCKER_ENABLED
                  value: "true"
"""


def build_event(  # noqa: PLR0913
    *,
    action: str = "queued",
    full_name: str = "acme/app",
    private: bool = True,
    fork: bool = False,
    labels: cabc.Iterable[str] = DEFAULT_LABELS,
    head_sha: str = "abc123",
) -> WorkflowJobEvent:
    """Return a ``workflow_job`` event with sensible defaults."""
    return WorkflowJobEvent(
        action=action,
        repository=EventRepository(full_name=full_name, private=private, fork=fork),
        workflow_job=WorkflowJob(
            head_sha=head_sha,
            labels=tuple(labels),
            id=4242,
            run_id=77,
            name="build",
        ),
    )


def event_body(event: WorkflowJobEvent) -> bytes:
    """Return the JSON webhook body for ``event``."""
    return msgspec.json.encode(event)


def sign(
    body: bytes, secret: str = WEBHOOK_SECRET, *, algorithm: str = "sha256"
) -> str:
    """Return the signature header value GitHub would send for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, getattr(hashlib, algorithm))
    return f"{algorithm}={digest.hexdigest()}"
