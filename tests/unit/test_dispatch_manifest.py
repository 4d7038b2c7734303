"""Unit tests for manifest parsing and transformation."""

from __future__ import annotations

import msgspec
import pytest

from actions_job.cloudrun.models import EnvVar
from actions_job.dispatch.errors import ManifestParseError
from actions_job.dispatch.manifest import (
    SIDECAR_IMAGE,
    SIDECAR_NAME,
    TransformContext,
    docker_enabled,
    dood_image,
    parse_job_manifest,
    transform_manifest,
)
from tests.helpers.workflow_events import (
    DEFAULT_LABELS,
    DOCKER_MANIFEST,
    SIMPLE_MANIFEST,
)

DESCRIBED_MANIFEST = """\
apiVersion: run.googleapis.com/v1
kind: Job
metadata:
  name: actions-runner
  namespace: "123456789"
  generation: 3
  resourceVersion: AAYFj2Xh5yA
  uid: "0b8f6a2c-2b1e-4c55-9d1c-3f0e4f8b7a21"
  creationTimestamp: "2024-05-01T09:30:00.000000Z"
  labels:
    cloud.googleapis.com/location: us-central1
spec:
  template:
    spec:
      taskCount: 1
      template:
        spec:
          maxRetries: 0
          containers:
            - image: acme/actions-job:latest
              imagePullPolicy: Always
              envFrom:
                - secretRef:
                    name: runner-env
              startupProbe:
                tcpSocket:
                  port: 8080
              terminationMessagePath: /dev/termination-log
              terminationMessagePolicy: File
status:
  observedGeneration: 3
  executionCount: 7
"""

CONTEXT = TransformContext(owner="acme", repo="app", labels=DEFAULT_LABELS)


def _env_names(env: list[EnvVar]) -> list[str]:
    return [entry.name for entry in env]


class TestParseJobManifest:
    """Tests for ``parse_job_manifest``."""

    def test_parses_nested_job_structure(self) -> None:
        """The container list is reachable through the nested templates."""
        job = parse_job_manifest(SIMPLE_MANIFEST)

        assert job.metadata.name == "actions-runner"
        assert job.api_version == "run.googleapis.com/v1"
        assert [c.image for c in job.containers] == ["acme/actions-job:latest"]

    @pytest.mark.parametrize(
        ("text", "match"),
        [
            ("metadata: [unclosed", "YAML"),
            ("", "empty"),
            ("just a string", "schema"),
            (
                SIMPLE_MANIFEST.replace("  name: actions-runner", "  namespace: ci"),
                "metadata.name",
            ),
            (
                SIMPLE_MANIFEST.replace("image:", "imagee:"),
                "schema",
            ),
        ],
    )
    def test_rejects_unusable_manifests(self, text: str, match: str) -> None:
        """Malformed or incomplete manifests raise ``ManifestParseError``."""
        with pytest.raises(ManifestParseError, match=match):
            parse_job_manifest(text)

    def test_accepts_manifest_exported_from_the_platform(self) -> None:
        """Server-populated fields and full container settings survive encoding."""
        job = parse_job_manifest(DESCRIBED_MANIFEST)

        encoded = msgspec.json.decode(msgspec.json.encode(job))
        container = encoded["spec"]["template"]["spec"]["template"]["spec"][
            "containers"
        ][0]
        assert container["imagePullPolicy"] == "Always"
        assert container["envFrom"] == [{"secretRef": {"name": "runner-env"}}]
        assert container["startupProbe"] == {"tcpSocket": {"port": 8080}}
        assert encoded["metadata"]["generation"] == 3
        assert encoded["metadata"]["resourceVersion"] == "AAYFj2Xh5yA"
        assert encoded["status"]["observedGeneration"] == 3

    def test_status_is_not_encoded_when_absent(self) -> None:
        """Manifests without a status block are submitted without one."""
        encoded = msgspec.json.decode(
            msgspec.json.encode(parse_job_manifest(SIMPLE_MANIFEST))
        )

        assert "status" not in encoded
        assert encoded["kind"] == "Job"

    def test_rejects_duplicate_keys(self) -> None:
        """Duplicate mapping keys are a YAML error, not a silent overwrite."""
        text = SIMPLE_MANIFEST.replace(
            "metadata:\n", "metadata:\n  name: other\n", 1
        )
        with pytest.raises(ManifestParseError, match="YAML"):
            parse_job_manifest(text)

    def test_rejects_empty_container_list(self) -> None:
        """A job must declare at least one container."""
        text = SIMPLE_MANIFEST.split("          containers:")[0]
        text += "          containers: []\n"

        with pytest.raises(ManifestParseError, match="no containers"):
            parse_job_manifest(text)


class TestDoodImage:
    """Tests for the docker-outside-of-docker image rewrite."""

    @pytest.mark.parametrize(
        ("image", "expected"),
        [
            ("acme/actions-job:latest", "acme/actions-job-dood:latest"),
            ("acme/actions-job", "acme/actions-job-dood"),
            (
                "registry.example.com:5000/acme/runner:v2",
                "registry.example.com:5000/acme/runner-dood:v2",
            ),
            (
                "ghcr.io/acme/runner@sha256:0123abcd",
                "ghcr.io/acme/runner-dood@sha256:0123abcd",
            ),
            ("acme/actions-job-dood:latest", "acme/actions-job-dood:latest"),
        ],
    )
    def test_rewrites_repository_name(self, image: str, expected: str) -> None:
        """The suffix lands on the repository, keeping tag and digest."""
        assert dood_image(image) == expected

    @pytest.mark.parametrize(
        "image",
        ["acme/actions-job:latest", "localhost:5000/runner", "runner@sha256:ff"],
    )
    def test_rewrite_is_idempotent(self, image: str) -> None:
        """Applying the rewrite twice equals applying it once."""
        once = dood_image(image)
        assert dood_image(once) == once


class TestTransformManifest:
    """Tests for ``transform_manifest``."""

    def test_appends_context_env_exactly_once(self) -> None:
        """OWNER, REPO and LABELS are appended after existing entries."""
        result = transform_manifest(SIMPLE_MANIFEST, CONTEXT)
        env = result.job.containers[0].env

        assert _env_names(env) == ["RUNNER_SCOPE", "OWNER", "REPO", "LABELS"]
        values = {entry.name: entry.value for entry in env}
        assert values["OWNER"] == "acme"
        assert values["REPO"] == "app"
        assert values["LABELS"] == (
            "self-hosted,project=proj1,region=us-central1,"
            "job-manifest=.github/job.yaml"
        )

    def test_without_docker_flag_job_is_not_augmented(self) -> None:
        """The image stays unchanged and no sidecar is added."""
        result = transform_manifest(SIMPLE_MANIFEST, CONTEXT)

        assert result.job_name == "actions-runner"
        assert not result.docker_enabled
        assert [c.image for c in result.job.containers] == ["acme/actions-job:latest"]

    def test_docker_flag_adds_sidecar_and_dood_image(self) -> None:
        """DOCKER_ENABLED=true rewrites the image and appends the sidecar."""
        result = transform_manifest(DOCKER_MANIFEST, CONTEXT)
        containers = result.job.containers

        assert result.docker_enabled
        assert len(containers) == 2
        assert containers[0].image == "acme/actions-job-dood:latest"
        assert (containers[1].name, containers[1].image) == (
            SIDECAR_NAME,
            SIDECAR_IMAGE,
        )
        assert _env_names(containers[0].env).count("OWNER") == 1
        assert containers[1].env == []

    def test_docker_flag_must_be_exactly_true(self) -> None:
        """Other values of DOCKER_ENABLED leave the job alone."""
        text = DOCKER_MANIFEST.replace('value: "true"', 'value: "false"')
        result = transform_manifest(text, CONTEXT)

        assert len(result.job.containers) == 1

    def test_docker_flag_on_any_container_counts(self) -> None:
        """The flag may be set on a later container."""
        text = SIMPLE_MANIFEST + (
            "            - image: acme/helper:1\n"
            "              name: helper\n"
            "              env:\n"
            "                - name: DOCKER_ENABLED\n"
            '                  value: "true"\n'
        )
        result = transform_manifest(text, CONTEXT)

        assert [c.name for c in result.job.containers] == [None, "helper", "docker"]
        assert result.job.containers[0].image == "acme/actions-job-dood:latest"

    def test_each_call_starts_from_the_manifest_text(self) -> None:
        """Repeated transformations never accumulate entries."""
        first = transform_manifest(DOCKER_MANIFEST, CONTEXT)
        second = transform_manifest(DOCKER_MANIFEST, CONTEXT)

        assert first.job == second.job
        assert _env_names(second.job.containers[0].env).count("LABELS") == 1


def test_docker_enabled_reads_env_entries() -> None:
    """``docker_enabled`` inspects every container's environment."""
    job = parse_job_manifest(DOCKER_MANIFEST)
    assert docker_enabled(job.containers)
    assert not docker_enabled(parse_job_manifest(SIMPLE_MANIFEST).containers)
