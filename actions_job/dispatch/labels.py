"""Runner options carried in ``key=value`` job labels.

Workflows select a job manifest and its target by adding labels next to
``self-hosted``::

    runs-on: [self-hosted, project=ci-runners, region=us-central1,
              job-manifest=.github/runner-job.yaml]

``location=`` is an alias for ``region=`` and ``runner-config=`` an alias for
``job-manifest=``. When a key (or one of its aliases) appears more than once
the first occurrence wins; labels with an empty value are ignored.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from .errors import LabelValidationError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_LABEL_FIELDS: dict[str, str] = {
    "project": "project",
    "region": "region",
    "location": "region",
    "job-manifest": "job_manifest",
    "runner-config": "job_manifest",
}


@dc.dataclass(frozen=True, slots=True)
class LabeledOptions:
    """Options extracted from the job labels.

    Attributes
    ----------
    project
        Target project, when a ``project=`` label is present.
    region
        Target region, from ``region=`` or ``location=``.
    job_manifest
        Repository path of the job manifest; empty when no label names one.

    """

    project: str | None = None
    region: str | None = None
    job_manifest: str = ""


def _split_label(label: str) -> tuple[str, str] | None:
    key, sep, value = label.partition("=")
    if not sep:
        return None
    field = _LABEL_FIELDS.get(key.strip())
    value = value.strip()
    if field is None or not value:
        return None
    return field, value


def extract_labeled_options(labels: cabc.Iterable[str]) -> LabeledOptions:
    """Scan ``labels`` for recognised ``key=value`` tokens.

    Never fails: unrecognised tokens are skipped and later duplicates of an
    already-seen key are dropped.

    Examples
    --------
    >>> extract_labeled_options(["self-hosted", "region=eu", "location=us"])
    LabeledOptions(project=None, region='eu', job_manifest='')

    """
    found: dict[str, str] = {}
    for label in labels:
        match = _split_label(label)
        if match is None:
            continue
        field, value = match
        found.setdefault(field, value)
    return LabeledOptions(**found)


def validate_labeled_options(options: LabeledOptions) -> LabeledOptions:
    """Return ``options`` when they name a job manifest.

    Raises
    ------
    LabelValidationError
        If no manifest path was extracted.

    """
    if not options.job_manifest:
        raise LabelValidationError.missing_manifest_path()
    return options
