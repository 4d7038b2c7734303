"""GitHub contents client and webhook validation helpers."""

from __future__ import annotations

from .client import GitHubContentsClient
from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubContentError,
    WebhookSignatureError,
)
from .webhook import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_256_HEADER,
    SIGNATURE_HEADER,
    extract_payload,
    verify_signature,
)

__all__ = [
    "DELIVERY_HEADER",
    "EVENT_HEADER",
    "SIGNATURE_256_HEADER",
    "SIGNATURE_HEADER",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubContentError",
    "GitHubContentsClient",
    "WebhookSignatureError",
    "extract_payload",
    "verify_signature",
]
