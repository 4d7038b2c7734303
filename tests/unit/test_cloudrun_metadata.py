"""Unit tests for GCP metadata lookups and token providers."""

from __future__ import annotations

import httpx
import pytest

from actions_job.cloudrun.errors import MetadataError
from actions_job.cloudrun.metadata import (
    MetadataClient,
    MetadataTokenProvider,
    StaticTokenProvider,
)
from tests.helpers.dispatch_fakes import FakeClock

_ANSWERS = {
    "/computeMetadata/v1/project/project-id": "proj1",
    "/computeMetadata/v1/instance/region": "projects/123456/regions/us-central1",
}


def _metadata_client(
    token_expiry: float = 3599.0,
) -> tuple[MetadataClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/token"):
            token = f"token-{len(requests)}"
            return httpx.Response(
                200,
                json={
                    "access_token": token,
                    "expires_in": token_expiry,
                    "token_type": "Bearer",
                },
            )
        answer = _ANSWERS.get(request.url.path)
        if answer is None:
            return httpx.Response(404)
        return httpx.Response(200, text=answer)

    client = MetadataClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    )
    return client, requests


@pytest.mark.asyncio
async def test_project_and_region_lookups() -> None:
    """The region path is reduced to its last segment."""
    client, requests = _metadata_client()

    assert await client.project_id() == "proj1"
    assert await client.region() == "us-central1"
    assert all(r.headers["Metadata-Flavor"] == "Google" for r in requests)


@pytest.mark.asyncio
async def test_error_status_raises_metadata_error() -> None:
    """Failed lookups raise ``MetadataError``."""
    client = MetadataClient(
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda _request: httpx.Response(500))
        )
    )

    with pytest.raises(MetadataError, match="HTTP 500"):
        await client.project_id()


@pytest.mark.asyncio
async def test_token_provider_caches_until_near_expiry() -> None:
    """Tokens are reused until the refresh margin is reached."""
    client, requests = _metadata_client(token_expiry=100.0)
    clock = FakeClock(start=0.0)
    provider = MetadataTokenProvider(client, clock=clock)

    first = await provider.access_token()
    clock.now = 60.0
    second = await provider.access_token()
    clock.now = 71.0
    third = await provider.access_token()

    assert first == second == "token-1"
    assert third == "token-2"
    assert len(requests) == 2


@pytest.mark.asyncio
async def test_static_token_provider() -> None:
    """Static tokens are returned unchanged."""
    assert await StaticTokenProvider("abc").access_token() == "abc"
