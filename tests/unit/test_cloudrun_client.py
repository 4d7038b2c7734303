"""Unit tests for the Cloud Run Admin API jobs client."""

from __future__ import annotations

import json
import typing as typ

import httpx
import pytest

from actions_job.cloudrun.client import CloudRunJobsClient, job_resource_name
from actions_job.cloudrun.errors import (
    CloudRunAPIError,
    JobConflictError,
    JobNotFoundError,
    MetadataError,
)
from actions_job.cloudrun.metadata import StaticTokenProvider
from actions_job.config import CloudRunConfig
from actions_job.dispatch.manifest import parse_job_manifest
from actions_job.dispatch.models import JobIdentity
from tests.helpers.workflow_events import SIMPLE_MANIFEST

IDENTITY = JobIdentity(project="proj1", region="us-central1", name="actions-runner")
_JOBS_URL = (
    "https://us-central1-run.googleapis.com/apis/run.googleapis.com/v1/"
    "namespaces/proj1/jobs"
)


def _make_client(
    responses: list[httpx.Response],
) -> tuple[CloudRunJobsClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses[len(requests) - 1]

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = CloudRunJobsClient(
        CloudRunConfig(),
        StaticTokenProvider("ya29.token"),
        http_client=http_client,
    )
    return client, requests


def _job_body(*, ready: str = "True") -> dict[str, typ.Any]:
    return {
        "apiVersion": "run.googleapis.com/v1",
        "kind": "Job",
        "metadata": {"name": "actions-runner", "namespace": "123", "generation": 2},
        "spec": {"template": {}},
        "status": {
            "observedGeneration": 2,
            "conditions": [
                {"type": "Ready", "status": ready},
                {"type": "ResourcesAvailable", "status": "True"},
            ],
        },
    }


def test_job_resource_name() -> None:
    """Jobs are addressed within their project namespace."""
    assert job_resource_name(IDENTITY) == "namespaces/proj1/jobs/actions-runner"


@pytest.mark.asyncio
async def test_get_job_decodes_ready_condition() -> None:
    """GET returns a resource whose readiness reflects the Ready condition."""
    client, requests = _make_client([httpx.Response(200, json=_job_body())])

    resource = await client.get_job(IDENTITY)

    assert resource.is_ready
    assert resource.metadata.name == "actions-runner"
    assert str(requests[0].url) == f"{_JOBS_URL}/actions-runner"
    assert requests[0].headers["Authorization"] == "Bearer ya29.token"


@pytest.mark.asyncio
async def test_get_job_not_ready_when_condition_unknown() -> None:
    """A Ready condition other than True is not ready."""
    client, _ = _make_client([httpx.Response(200, json=_job_body(ready="Unknown"))])

    assert not (await client.get_job(IDENTITY)).is_ready


@pytest.mark.asyncio
async def test_create_posts_camel_case_job() -> None:
    """Create POSTs the manifest to the collection URL."""
    client, requests = _make_client([httpx.Response(200, json=_job_body())])
    job = parse_job_manifest(SIMPLE_MANIFEST)

    await client.create_job(IDENTITY, job)

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == _JOBS_URL
    body = json.loads(request.content)
    assert body["apiVersion"] == "run.googleapis.com/v1"
    assert body["kind"] == "Job"
    containers = body["spec"]["template"]["spec"]["template"]["spec"]["containers"]
    assert containers[0]["image"] == "acme/actions-job:latest"
    assert "command" not in containers[0]


@pytest.mark.asyncio
async def test_replace_puts_to_job_url() -> None:
    """Replace PUTs the manifest to the job URL."""
    client, requests = _make_client([httpx.Response(200, json=_job_body())])

    await client.replace_job(IDENTITY, parse_job_manifest(SIMPLE_MANIFEST))

    assert requests[0].method == "PUT"
    assert str(requests[0].url) == f"{_JOBS_URL}/actions-runner"


@pytest.mark.asyncio
async def test_run_job_returns_execution_handle() -> None:
    """Run POSTs to the ``:run`` verb and returns the execution name."""
    client, requests = _make_client(
        [httpx.Response(200, json={"metadata": {"name": "actions-runner-abcde"}})]
    )

    execution = await client.run_job(IDENTITY)

    assert execution.handle == "actions-runner-abcde"
    assert str(requests[0].url) == f"{_JOBS_URL}/actions-runner:run"
    assert requests[0].content == b"{}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (404, JobNotFoundError),
        (409, JobConflictError),
        (403, CloudRunAPIError),
        (500, CloudRunAPIError),
    ],
)
async def test_error_statuses_map_to_exceptions(
    status: int, error_type: type[CloudRunAPIError]
) -> None:
    """HTTP error statuses raise typed errors carrying the status code."""
    client, _ = _make_client([httpx.Response(status, text="nope")])

    with pytest.raises(error_type) as excinfo:
        await client.get_job(IDENTITY)

    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_invalid_body_is_an_api_error() -> None:
    """Undecodable responses raise ``CloudRunAPIError``."""
    client, _ = _make_client([httpx.Response(200, text="<html>")])

    with pytest.raises(CloudRunAPIError, match="invalid body"):
        await client.get_job(IDENTITY)


@pytest.mark.asyncio
async def test_transport_errors_are_wrapped() -> None:
    """Network failures raise ``CloudRunAPIError``."""

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = CloudRunJobsClient(
        CloudRunConfig(),
        StaticTokenProvider("t"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )

    with pytest.raises(CloudRunAPIError, match="network error"):
        await client.run_job(IDENTITY)


class _BrokenTokens:
    async def access_token(self) -> str:
        raise MetadataError.request_failed("/token", "unreachable")


@pytest.mark.asyncio
async def test_missing_credentials_are_an_api_error() -> None:
    """Token provider failures are reported as Cloud Run errors."""
    client = CloudRunJobsClient(
        CloudRunConfig(),
        _BrokenTokens(),
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda _request: httpx.Response(200))
        ),
    )

    with pytest.raises(CloudRunAPIError, match="no credentials"):
        await client.get_job(IDENTITY)


def test_endpoint_template_is_regional() -> None:
    """The endpoint template substitutes the job region."""
    config = CloudRunConfig(endpoint_template="http://localhost:8181/{region}/")
    assert config.endpoint_for("europe-west1") == "http://localhost:8181/europe-west1"
