"""Dispatch of queued GitHub Actions jobs to Cloud Run jobs."""

from __future__ import annotations

from .dispatcher import JobDispatcher
from .errors import (
    DispatchError,
    DispatchErrorKind,
    DispatchStage,
    LabelValidationError,
    ManifestParseError,
    NonTargetEvent,
    ReadinessTimeout,
    RemoteStateError,
    SecurityViolation,
    UpstreamFetchError,
)
from .gate import CAPABILITY_LABEL, admit
from .labels import LabeledOptions, extract_labeled_options, validate_labeled_options
from .manifest import (
    TransformContext,
    TransformedManifest,
    dood_image,
    parse_job_manifest,
    transform_manifest,
)
from .models import (
    Created,
    DispatchOutcome,
    DispatchState,
    Failed,
    JobIdentity,
    JobTarget,
    OutcomeKind,
    Rejected,
    RejectionKind,
    Updated,
)
from .observability import DispatchEventLogger, DispatchEventType
from .protocol import JobStore, ManifestFetcher
from .service import WorkflowJobController
from .targets import TargetResolver

__all__ = [
    "CAPABILITY_LABEL",
    "Created",
    "DispatchError",
    "DispatchErrorKind",
    "DispatchEventLogger",
    "DispatchEventType",
    "DispatchOutcome",
    "DispatchStage",
    "DispatchState",
    "Failed",
    "JobDispatcher",
    "JobIdentity",
    "JobStore",
    "JobTarget",
    "LabelValidationError",
    "LabeledOptions",
    "ManifestFetcher",
    "ManifestParseError",
    "NonTargetEvent",
    "OutcomeKind",
    "ReadinessTimeout",
    "Rejected",
    "RejectionKind",
    "RemoteStateError",
    "SecurityViolation",
    "TargetResolver",
    "TransformContext",
    "TransformedManifest",
    "Updated",
    "UpstreamFetchError",
    "WorkflowJobController",
    "admit",
    "dood_image",
    "extract_labeled_options",
    "parse_job_manifest",
    "transform_manifest",
    "validate_labeled_options",
]
