"""Webhook delivery validation.

GitHub signs each delivery with the shared webhook secret. The SHA-256
signature (``X-Hub-Signature-256``) is preferred; the legacy SHA-1
signature (``X-Hub-Signature``) is accepted when it is the only one sent.
Deliveries configured with the ``application/x-www-form-urlencoded``
content type carry the JSON document in a ``payload`` form field.
"""

from __future__ import annotations

import hashlib
import hmac
import urllib.parse

from actions_job.events import InvalidEventPayloadError

from .errors import WebhookSignatureError

SIGNATURE_256_HEADER = "X-Hub-Signature-256"
SIGNATURE_HEADER = "X-Hub-Signature"
EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_DIGESTS = {"sha256": hashlib.sha256, "sha1": hashlib.sha1}


def verify_signature(
    body: bytes,
    secret: str,
    *,
    signature_256: str | None,
    signature: str | None = None,
) -> None:
    """Check ``body`` against the delivery signature headers.

    Raises
    ------
    WebhookSignatureError
        If no signature is present, the header is malformed, or the digest
        does not match.

    """
    header = signature_256 or signature
    if not header:
        raise WebhookSignatureError.missing()

    algorithm, sep, received = header.partition("=")
    digest = _DIGESTS.get(algorithm)
    if not sep or digest is None or not received:
        raise WebhookSignatureError.malformed(header)

    expected = hmac.new(secret.encode("utf-8"), body, digest).hexdigest()
    if not hmac.compare_digest(expected, received):
        raise WebhookSignatureError.mismatch()


def extract_payload(body: bytes, content_type: str | None) -> bytes:
    """Return the JSON document of a delivery, whatever its content type.

    Raises
    ------
    InvalidEventPayloadError
        If a form-encoded body is not valid UTF-8.

    """
    if content_type is None or not content_type.startswith(_FORM_CONTENT_TYPE):
        return body

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEventPayloadError.undecodable("form body is not UTF-8") from exc

    form = urllib.parse.parse_qs(text, keep_blank_values=True)
    values = form.get("payload")
    if not values:
        return b""
    return values[0].encode("utf-8")
