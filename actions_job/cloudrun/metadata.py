"""GCP metadata server lookups and access-token providers.

When the service runs on Cloud Run itself, the metadata server supplies the
default project, the region and a short-lived access token for the service
account. Each lookup sends the mandatory ``Metadata-Flavor: Google`` header.
"""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from actions_job.common.time import monotonic

from .errors import MetadataError

if typ.TYPE_CHECKING:
    from actions_job.common.time import Clock

METADATA_ENDPOINT = "http://metadata.google.internal"
_PROJECT_ID_PATH = "/computeMetadata/v1/project/project-id"
_REGION_PATH = "/computeMetadata/v1/instance/region"
_TOKEN_PATH = "/computeMetadata/v1/instance/service-accounts/default/token"
_HTTP_ERROR_STATUS_THRESHOLD = 400
# Refresh tokens slightly before the platform-reported expiry.
_TOKEN_EXPIRY_MARGIN_S = 30.0


class AccessTokenProvider(typ.Protocol):
    """Supplies bearer tokens for Admin API requests."""

    async def access_token(self) -> str:
        """Return a currently valid access token."""
        ...


class _TokenResponse(msgspec.Struct, kw_only=True):
    access_token: str
    expires_in: float
    token_type: str = "Bearer"


def _region_from_path(raw: str) -> str:
    """Reduce ``projects/123/regions/us-central1`` to ``us-central1``."""
    if "/regions/" in raw:
        return raw.rsplit("/", 1)[-1]
    return raw


class MetadataClient:
    """Read project, region and tokens from the GCP metadata server."""

    def __init__(
        self,
        *,
        endpoint: str = METADATA_ENDPOINT,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 1.0,
    ) -> None:
        """Initialise the client, creating an HTTP client when none is given."""
        self._endpoint = endpoint.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def project_id(self) -> str:
        """Return the project hosting this service."""
        return (await self._get(_PROJECT_ID_PATH)).strip()

    async def region(self) -> str:
        """Return the region hosting this service."""
        return _region_from_path((await self._get(_REGION_PATH)).strip())

    async def fetch_token(self) -> tuple[str, float]:
        """Return ``(access_token, expires_in_seconds)`` for the default account."""
        body = await self._get(_TOKEN_PATH)
        try:
            token = msgspec.json.decode(body, type=_TokenResponse)
        except msgspec.DecodeError as exc:
            raise MetadataError.request_failed(_TOKEN_PATH, str(exc)) from exc
        return token.access_token, token.expires_in

    async def _get(self, path: str) -> str:
        try:
            response = await self._client.get(
                f"{self._endpoint}{path}",
                headers={"Metadata-Flavor": "Google"},
            )
        except httpx.HTTPError as exc:
            raise MetadataError.request_failed(path, str(exc)) from exc
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise MetadataError.request_failed(path, f"HTTP {response.status_code}")
        return response.text


class StaticTokenProvider:
    """Return a pre-issued token unchanged."""

    def __init__(self, token: str) -> None:
        """Store the token."""
        self._token = token

    async def access_token(self) -> str:
        """Return the configured token."""
        return self._token


class MetadataTokenProvider:
    """Cache metadata-server tokens until shortly before they expire."""

    def __init__(self, metadata: MetadataClient, *, clock: Clock = monotonic) -> None:
        """Wrap a metadata client; ``clock`` returns monotonic seconds."""
        self._metadata = metadata
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0

    async def access_token(self) -> str:
        """Return the cached token, refreshing it when close to expiry."""
        now = self._clock()
        if self._token is None or now >= self._expires_at:
            token, expires_in = await self._metadata.fetch_token()
            self._token = token
            self._expires_at = now + max(expires_in - _TOKEN_EXPIRY_MARGIN_S, 0.0)
        return self._token
