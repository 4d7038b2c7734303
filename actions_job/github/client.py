"""GitHub REST contents client used to download job manifests."""

from __future__ import annotations

import base64
import binascii
import typing as typ
import urllib.parse

import httpx
import msgspec

from .errors import GitHubAPIError, GitHubConfigError, GitHubContentError

if typ.TYPE_CHECKING:
    from actions_job.config import GitHubConfig

_HTTP_ERROR_STATUS_THRESHOLD = 400


class _ContentEntry(msgspec.Struct, kw_only=True):
    """Single entry returned by ``GET /repos/{owner}/{repo}/contents/{path}``."""

    type: str
    path: str = ""
    encoding: str | None = None
    content: str | None = None
    download_url: str | None = None


def _decode_content(entry: _ContentEntry, path: str) -> str | None:
    """Return decoded file text, or None when the body must be downloaded."""
    if entry.encoding == "base64" and entry.content is not None:
        try:
            raw = base64.b64decode(entry.content, validate=False)
            return raw.decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise GitHubContentError.undecodable(path, str(exc)) from exc
    if entry.encoding in (None, "", "none") and entry.download_url:
        return None
    raise GitHubContentError.unexpected_shape(path)


class GitHubContentsClient:
    """Fetch repository files through the GitHub REST API.

    Files above the contents API inline limit come back with
    ``encoding: none``; their bodies are then read from ``download_url``.
    """

    def __init__(
        self,
        config: GitHubConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, owner: str, repo: str, path: str, revision: str) -> str:
        """Return the text of ``path`` at ``revision``.

        Raises
        ------
        GitHubAPIError
            If GitHub answers with an error status or cannot be reached.
        GitHubContentError
            If the path is not a regular file or its content cannot be
            decoded.

        """
        quoted_path = urllib.parse.quote(path.lstrip("/"))
        url = f"{self._config.api_url}/repos/{owner}/{repo}/contents/{quoted_path}"
        response = await self._get(url, params={"ref": revision})

        try:
            entry = msgspec.json.decode(response.content, type=_ContentEntry)
        except msgspec.DecodeError as exc:
            # Directories decode as JSON arrays rather than objects.
            raise GitHubContentError.not_a_file(path, "directory") from exc

        if entry.type != "file":
            raise GitHubContentError.not_a_file(path, entry.type)

        text = _decode_content(entry, path)
        if text is not None:
            return text

        raw_response = await self._get(
            typ.cast("str", entry.download_url),
            headers={"Accept": "application/vnd.github.raw"},
        )
        return raw_response.text

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            raise GitHubAPIError.timeout(url) from exc
        except httpx.RequestError as exc:
            raise GitHubAPIError.network_error(url, str(exc)) from exc
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, url)
        return response
