"""Render a job manifest the way the dispatcher would submit it."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import msgspec
from ruamel.yaml import YAML

from actions_job.common.slug import parse_repo_slug
from actions_job.dispatch.errors import ManifestParseError
from actions_job.dispatch.manifest import (
    YAML_VERSION,
    TransformContext,
    transform_manifest,
)


def _dump_yaml(document: object) -> None:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.default_flow_style = False
    yaml.dump(document, sys.stdout)


def main(argv: list[str] | None = None) -> int:
    """Transform a manifest for a repository and print the resulting job.

    No network access is involved: the manifest is read from disk and the
    job is written to standard output as YAML.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when the manifest or arguments are invalid.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("manifest", type=Path, help="YAML job manifest to render")
    parser.add_argument(
        "--repo",
        required=True,
        help="Repository slug in owner/name format",
    )
    parser.add_argument(
        "--label",
        action="append",
        default=[],
        dest="labels",
        help="Runner label; repeat for each label, in workflow order",
    )
    args = parser.parse_args(argv)

    manifest_path: Path = args.manifest
    try:
        owner, repo = parse_repo_slug(args.repo)
        raw_text = manifest_path.read_text(encoding="utf-8")
        transformed = transform_manifest(
            raw_text,
            TransformContext(owner=owner, repo=repo, labels=tuple(args.labels)),
        )
    except (OSError, ValueError, ManifestParseError) as exc:
        print(f"Cannot render {manifest_path}: {exc}", file=sys.stderr)
        return 1

    _dump_yaml(msgspec.to_builtins(transformed.job))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
