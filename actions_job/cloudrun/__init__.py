"""Cloud Run Admin API client, job models and metadata lookups."""

from __future__ import annotations

from .client import CloudRunJobsClient, job_resource_name
from .errors import CloudRunAPIError, JobConflictError, JobNotFoundError, MetadataError
from .metadata import (
    AccessTokenProvider,
    MetadataClient,
    MetadataTokenProvider,
    StaticTokenProvider,
)
from .models import (
    Container,
    EnvVar,
    ExecutionResource,
    Job,
    JobResource,
)

__all__ = [
    "AccessTokenProvider",
    "CloudRunAPIError",
    "CloudRunJobsClient",
    "Container",
    "EnvVar",
    "ExecutionResource",
    "Job",
    "JobConflictError",
    "JobNotFoundError",
    "JobResource",
    "MetadataClient",
    "MetadataError",
    "MetadataTokenProvider",
    "StaticTokenProvider",
    "job_resource_name",
]
