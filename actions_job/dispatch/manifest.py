"""Turn a repository job manifest into the job resource that is submitted.

The manifest is a Cloud Run v1 ``Job`` written in YAML. Transformation
parses it, appends the runner context to the first container's environment
and, when a container sets ``DOCKER_ENABLED=true``, switches the first
container to its docker-outside-of-docker image and adds a docker engine
sidecar.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from actions_job.cloudrun.models import Container, EnvVar, Job

from .errors import ManifestParseError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

YAML_VERSION = (1, 2)
DOCKER_ENABLED_ENV = "DOCKER_ENABLED"
DOOD_SUFFIX = "-dood"
SIDECAR_NAME = "docker"
SIDECAR_IMAGE = "docker:dind"


@dc.dataclass(frozen=True, slots=True)
class TransformContext:
    """Event values injected into the job environment."""

    owner: str
    repo: str
    labels: tuple[str, ...]


@dc.dataclass(frozen=True, slots=True)
class TransformedManifest:
    """A job ready for submission and the name it is addressed by."""

    job: Job
    job_name: str
    docker_enabled: bool = False


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml


def parse_job_manifest(raw_text: str) -> Job:
    """Parse YAML manifest text into a :class:`Job`.

    Raises
    ------
    ManifestParseError
        If the text is not valid YAML, is empty, does not match the job
        schema, lacks ``metadata.name`` or declares no container.

    """
    try:
        loaded = _yaml().load(raw_text)
    except YAMLError as exc:
        raise ManifestParseError.invalid_yaml(str(exc)) from exc

    if loaded is None:
        raise ManifestParseError.empty()

    try:
        job = msgspec.convert(loaded, type=Job)
    except msgspec.ValidationError as exc:
        raise ManifestParseError.schema_mismatch(str(exc)) from exc

    if not job.metadata.name:
        raise ManifestParseError.missing_job_name()
    if not job.containers:
        raise ManifestParseError.no_containers()
    return job


def docker_enabled(containers: cabc.Iterable[Container]) -> bool:
    """Return True when any container sets ``DOCKER_ENABLED`` to ``"true"``."""
    return any(
        env.name == DOCKER_ENABLED_ENV and env.value == "true"
        for container in containers
        for env in container.env
    )


def dood_image(image: str) -> str:
    """Return the docker-outside-of-docker variant of ``image``.

    The suffix is added to the repository name; tag and digest are kept.
    Images already carrying the suffix are returned unchanged.

    Examples
    --------
    >>> dood_image("acme/actions-job:latest")
    'acme/actions-job-dood:latest'
    >>> dood_image("acme/actions-job-dood:latest")
    'acme/actions-job-dood:latest'

    """
    name, at, digest = image.partition("@")
    # A colon before the last slash belongs to a registry port, not a tag.
    colon = name.rfind(":")
    if colon > name.rfind("/"):
        repository, tag = name[:colon], name[colon:]
    else:
        repository, tag = name, ""
    if not repository.endswith(DOOD_SUFFIX):
        repository = f"{repository}{DOOD_SUFFIX}"
    return f"{repository}{tag}{at}{digest}"


def inject_context(container: Container, context: TransformContext) -> None:
    """Append ``OWNER``, ``REPO`` and ``LABELS`` to the container environment."""
    container.env.extend(
        [
            EnvVar(name="OWNER", value=context.owner),
            EnvVar(name="REPO", value=context.repo),
            EnvVar(name="LABELS", value=",".join(context.labels)),
        ]
    )


def add_docker_sidecar(job: Job) -> None:
    """Switch the first container to its dood image and append the sidecar."""
    primary = job.containers[0]
    primary.image = dood_image(primary.image)
    job.containers.append(Container(name=SIDECAR_NAME, image=SIDECAR_IMAGE))


def transform_manifest(raw_text: str, context: TransformContext) -> TransformedManifest:
    """Parse ``raw_text`` and apply the runner transformations.

    Docker mode is decided from the manifest as written, before any entry
    is appended.

    Raises
    ------
    ManifestParseError
        If the manifest cannot be parsed into a job.

    """
    job = parse_job_manifest(raw_text)
    with_docker = docker_enabled(job.containers)

    inject_context(job.containers[0], context)
    if with_docker:
        add_docker_sidecar(job)

    return TransformedManifest(
        job=job,
        job_name=typ.cast("str", job.metadata.name),
        docker_enabled=with_docker,
    )
