"""Cloud Run Admin API v1 client for job resources.

Jobs are addressed as ``namespaces/{project}/jobs/{name}`` on the regional
endpoint of the job's region. The client maps HTTP outcomes onto the
exceptions in :mod:`actions_job.cloudrun.errors` so callers can tell a
missing job from a conflicting create or a broken request.
"""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from .errors import (
    CloudRunAPIError,
    JobConflictError,
    JobNotFoundError,
    MetadataError,
)
from .models import ExecutionResource, Job, JobResource

if typ.TYPE_CHECKING:
    from actions_job.config import CloudRunConfig
    from actions_job.dispatch.models import JobIdentity

    from .metadata import AccessTokenProvider

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409
_API_PREFIX = "apis/run.googleapis.com/v1"

_ResourceT = typ.TypeVar("_ResourceT", JobResource, ExecutionResource)


def job_resource_name(identity: JobIdentity) -> str:
    """Return the ``namespaces/{project}/jobs/{name}`` path of a job."""
    return f"namespaces/{identity.project}/jobs/{identity.name}"


class CloudRunJobsClient:
    """httpx implementation of the dispatcher's ``JobStore`` protocol."""

    def __init__(
        self,
        config: CloudRunConfig,
        token_provider: AccessTokenProvider,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with API configuration and credentials."""
        self._config = config
        self._tokens = token_provider
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def _url(self, identity: JobIdentity, suffix: str = "") -> str:
        base = self._config.endpoint_for(identity.region)
        return f"{base}/{_API_PREFIX}/namespaces/{identity.project}/jobs{suffix}"

    async def get_job(self, identity: JobIdentity) -> JobResource:
        """Return the job addressed by ``identity``.

        Raises
        ------
        JobNotFoundError
            If the job does not exist.
        CloudRunAPIError
            For any other failure.

        """
        response = await self._send(
            "get job",
            "GET",
            self._url(identity, f"/{identity.name}"),
            identity=identity,
        )
        return self._decode("get job", response, JobResource)

    async def create_job(self, identity: JobIdentity, job: Job) -> JobResource:
        """Create ``job`` in the identity's project and region.

        Raises
        ------
        JobConflictError
            If a job with the same name already exists.
        CloudRunAPIError
            For any other failure.

        """
        response = await self._send(
            "create job",
            "POST",
            self._url(identity),
            identity=identity,
            body=msgspec.json.encode(job),
        )
        return self._decode("create job", response, JobResource)

    async def replace_job(self, identity: JobIdentity, job: Job) -> JobResource:
        """Replace the existing job with ``job``.

        Raises
        ------
        JobNotFoundError
            If the job does not exist.
        CloudRunAPIError
            For any other failure.

        """
        response = await self._send(
            "replace job",
            "PUT",
            self._url(identity, f"/{identity.name}"),
            identity=identity,
            body=msgspec.json.encode(job),
        )
        return self._decode("replace job", response, JobResource)

    async def run_job(self, identity: JobIdentity) -> ExecutionResource:
        """Start a new execution of the job and return it.

        Container overrides are never sent; the run uses the job as stored.
        """
        response = await self._send(
            "run job",
            "POST",
            self._url(identity, f"/{identity.name}:run"),
            identity=identity,
            body=b"{}",
        )
        return self._decode("run job", response, ExecutionResource)

    async def _send(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        identity: JobIdentity,
        body: bytes | None = None,
    ) -> httpx.Response:
        try:
            token = await self._tokens.access_token()
        except MetadataError as exc:
            raise CloudRunAPIError.credentials_unavailable(
                operation, str(exc)
            ) from exc
        headers = {"Authorization": f"Bearer {token}"}
        if body is not None:
            headers["Content-Type"] = "application/json"
        try:
            response = await self._client.request(
                method, url, content=body, headers=headers
            )
        except httpx.TimeoutException as exc:
            raise CloudRunAPIError.timeout(operation) from exc
        except httpx.RequestError as exc:
            raise CloudRunAPIError.network_error(operation, str(exc)) from exc

        if response.status_code == _HTTP_NOT_FOUND:
            raise JobNotFoundError.for_job(job_resource_name(identity))
        if response.status_code == _HTTP_CONFLICT:
            raise JobConflictError.for_job(job_resource_name(identity))
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise CloudRunAPIError.http_error(
                operation, response.status_code, response.text
            )
        return response

    @staticmethod
    def _decode(
        operation: str, response: httpx.Response, type_: type[_ResourceT]
    ) -> _ResourceT:
        try:
            return msgspec.json.decode(response.content, type=type_)
        except msgspec.DecodeError as exc:
            raise CloudRunAPIError.invalid_response(operation, str(exc)) from exc
