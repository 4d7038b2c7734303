"""Capabilities the dispatch transaction consumes from its collaborators."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from actions_job.cloudrun.models import ExecutionResource, Job, JobResource

    from .models import JobIdentity


@typ.runtime_checkable
class ManifestFetcher(typ.Protocol):
    """Read a repository file at a fixed revision."""

    async def fetch(self, owner: str, repo: str, path: str, revision: str) -> str:
        """Return the file text, raising on any failure."""
        ...


@typ.runtime_checkable
class JobStore(typ.Protocol):
    """Remote job resource operations.

    ``get_job`` raises
    :class:`~actions_job.cloudrun.errors.JobNotFoundError` for missing jobs;
    every other failure is a
    :class:`~actions_job.cloudrun.errors.CloudRunAPIError`.
    """

    async def get_job(self, identity: JobIdentity) -> JobResource:
        """Return the current job resource."""
        ...

    async def create_job(self, identity: JobIdentity, job: Job) -> JobResource:
        """Create the job; an existing job is a conflict."""
        ...

    async def replace_job(self, identity: JobIdentity, job: Job) -> JobResource:
        """Replace the job; a missing job is not-found."""
        ...

    async def run_job(self, identity: JobIdentity) -> ExecutionResource:
        """Start an execution of the job."""
        ...
