"""Unit tests for the manifest rendering command."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

from actions_job.cli import main
from tests.helpers.workflow_events import DOCKER_MANIFEST, SIMPLE_MANIFEST

if typ.TYPE_CHECKING:
    from pathlib import Path

    import pytest


def _containers(rendered: str) -> list[dict[str, typ.Any]]:
    document = YAML(typ="safe").load(rendered)
    return document["spec"]["template"]["spec"]["template"]["spec"]["containers"]


def test_renders_transformed_job(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """The runner context is appended to the first container."""
    manifest = tmp_path / "job.yaml"
    manifest.write_text(SIMPLE_MANIFEST, encoding="utf-8")

    exit_code = main(
        [str(manifest), "--repo", "acme/app", "--label", "self-hosted", "--label", "x"]
    )

    assert exit_code == 0
    (container,) = _containers(capsys.readouterr().out)
    assert container["env"] == [
        {"name": "RUNNER_SCOPE", "value": "repo"},
        {"name": "OWNER", "value": "acme"},
        {"name": "REPO", "value": "app"},
        {"name": "LABELS", "value": "self-hosted,x"},
    ]


def test_renders_docker_sidecar(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Docker-enabled manifests gain the sidecar and the dood image."""
    manifest = tmp_path / "job.yaml"
    manifest.write_text(DOCKER_MANIFEST, encoding="utf-8")

    assert main([str(manifest), "--repo", "acme/app"]) == 0

    primary, sidecar = _containers(capsys.readouterr().out)
    assert primary["image"] == "acme/actions-job-dood:latest"
    assert sidecar == {"name": "docker", "image": "docker:dind"}


def test_invalid_manifest_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Parse errors are reported on stderr."""
    manifest = tmp_path / "job.yaml"
    manifest.write_text("kind: [unclosed", encoding="utf-8")

    assert main([str(manifest), "--repo", "acme/app"]) == 1
    assert "Cannot render" in capsys.readouterr().err


def test_missing_file_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Unreadable manifests are reported on stderr."""
    assert main([str(tmp_path / "absent.yaml"), "--repo", "acme/app"]) == 1
    assert "absent.yaml" in capsys.readouterr().err


def test_invalid_repo_slug_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """The repository must be an owner/name slug."""
    manifest = tmp_path / "job.yaml"
    manifest.write_text(SIMPLE_MANIFEST, encoding="utf-8")

    assert main([str(manifest), "--repo", "acme"]) == 1
    assert "Invalid repository slug" in capsys.readouterr().err
