"""Typed Cloud Run Admin API v1 job structures.

Two families of structs live here:

* The **manifest** structs (:class:`Job` and its children) describe the
  job resource a repository submits. They reject unknown fields, so a
  manifest never loses content silently between parsing and submission,
  and they omit unset fields when encoded.
* The **resource** structs (:class:`JobResource`, :class:`ExecutionResource`)
  decode API responses leniently, keeping only what the dispatcher reads.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import typing as typ

import msgspec

READY_CONDITION = "Ready"
CONDITION_TRUE = "True"


class _ManifestStruct(
    msgspec.Struct,
    kw_only=True,
    rename="camel",
    omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base for manifest structs using the API's camelCase field names."""


class EnvVar(_ManifestStruct):
    """A single name/value environment entry."""

    name: str
    value: str | None = None
    value_from: dict[str, typ.Any] | None = None


class Container(_ManifestStruct):
    """Container definition within a task template.

    Attributes
    ----------
    image : str
        Image reference the container runs.
    name : str, optional
        Container name; required by the platform when several containers
        are declared.
    env : list[EnvVar]
        Ordered environment entries. Appended to during transformation.

    """

    image: str
    name: str | None = None
    command: list[str] | None = None
    args: list[str] | None = None
    env: list[EnvVar] = msgspec.field(default_factory=list)
    env_from: list[dict[str, typ.Any]] | None = None
    image_pull_policy: str | None = None
    resources: dict[str, typ.Any] | None = None
    ports: list[dict[str, typ.Any]] | None = None
    volume_mounts: list[dict[str, typ.Any]] | None = None
    working_dir: str | None = None
    security_context: dict[str, typ.Any] | None = None
    liveness_probe: dict[str, typ.Any] | None = None
    startup_probe: dict[str, typ.Any] | None = None
    termination_message_path: str | None = None
    termination_message_policy: str | None = None


class TaskSpec(_ManifestStruct):
    """Containers and runtime settings of each task."""

    containers: list[Container] = msgspec.field(default_factory=list)
    volumes: list[dict[str, typ.Any]] | None = None
    max_retries: int | None = None
    timeout_seconds: int | str | None = None
    service_account_name: str | None = None
    node_selector: dict[str, str] | None = None


class TaskTemplateSpec(_ManifestStruct):
    """Template for the tasks of an execution."""

    spec: TaskSpec


class ExecutionSpec(_ManifestStruct):
    """Shape of each execution started from the job."""

    template: TaskTemplateSpec
    parallelism: int | None = None
    task_count: int | None = None


class ObjectMeta(_ManifestStruct):
    """Kubernetes-style object metadata.

    Server-populated fields are accepted so that the output of
    ``gcloud run jobs describe`` parses as a manifest.
    """

    name: str | None = None
    namespace: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    generation: int | None = None
    resource_version: str | None = None
    uid: str | None = None
    self_link: str | None = None
    creation_timestamp: dt.datetime | None = None
    owner_references: list[dict[str, typ.Any]] | None = None


class ExecutionTemplateSpec(_ManifestStruct):
    """Template for executions created from the job."""

    spec: ExecutionSpec
    metadata: ObjectMeta | None = None


class JobSpec(_ManifestStruct):
    """Job specification."""

    template: ExecutionTemplateSpec
    run_execution_token: str | None = None
    start_execution_token: str | None = None


class Job(
    msgspec.Struct,
    kw_only=True,
    rename="camel",
    forbid_unknown_fields=True,
):
    """Declarative Cloud Run job resource, as written in a job manifest.

    ``apiVersion`` and ``kind`` are always encoded because the Admin API
    requires them on create and replace. A ``status`` block is carried
    through untouched and only encoded when the manifest had one.
    """

    metadata: ObjectMeta
    spec: JobSpec
    api_version: str = "run.googleapis.com/v1"
    kind: str = "Job"
    status: dict[str, typ.Any] | msgspec.UnsetType = msgspec.UNSET

    @property
    def containers(self) -> list[Container]:
        """Return the task containers, in declaration order."""
        return self.spec.template.spec.template.spec.containers


class Condition(msgspec.Struct, kw_only=True):
    """Status condition reported by the platform."""

    type: str
    status: str = "Unknown"
    reason: str | None = None
    message: str | None = None


class JobStatus(msgspec.Struct, kw_only=True, rename="camel"):
    """Observed state of a job resource."""

    conditions: list[Condition] = msgspec.field(default_factory=list)
    observed_generation: int | None = None
    execution_count: int | None = None


class ResourceMeta(msgspec.Struct, kw_only=True, rename="camel"):
    """Subset of metadata read back from the API."""

    name: str = ""
    namespace: str | None = None
    uid: str | None = None
    generation: int | None = None


class JobResource(msgspec.Struct, kw_only=True):
    """A job as returned by the Admin API."""

    metadata: ResourceMeta = msgspec.field(default_factory=ResourceMeta)
    status: JobStatus | None = None

    @property
    def is_ready(self) -> bool:
        """Return True when the ``Ready`` condition reports ``True``."""
        if self.status is None:
            return False
        return any(
            condition.type == READY_CONDITION and condition.status == CONDITION_TRUE
            for condition in self.status.conditions
        )


class ExecutionResource(msgspec.Struct, kw_only=True):
    """An execution started by a run request."""

    metadata: ResourceMeta = msgspec.field(default_factory=ResourceMeta)

    @property
    def handle(self) -> str:
        """Return the execution name used to track the run."""
        return self.metadata.name
