"""GitHub client and webhook errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub HTTP {status_code} for {url}", status_code=status_code)

    @classmethod
    def timeout(cls, url: str) -> GitHubAPIError:
        """Return an error for request timeouts."""
        return cls(f"GitHub request timed out: {url}")

    @classmethod
    def network_error(cls, url: str, detail: str) -> GitHubAPIError:
        """Return an error for transport failures."""
        return cls(f"GitHub network error for {url}: {detail}")


class GitHubContentError(RuntimeError):
    """Raised when repository content cannot be turned into manifest text."""

    @classmethod
    def not_a_file(cls, path: str, kind: str) -> GitHubContentError:
        """Return an error when the path resolves to a non-file entry."""
        return cls(f"{path} is a {kind}, not a file")

    @classmethod
    def undecodable(cls, path: str, detail: str) -> GitHubContentError:
        """Return an error for content that is not valid base64 or UTF-8."""
        return cls(f"content of {path} could not be decoded: {detail}")

    @classmethod
    def unexpected_shape(cls, path: str) -> GitHubContentError:
        """Return an error when the contents API response is malformed."""
        return cls(f"unexpected contents API response for {path}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")


class WebhookSignatureError(ValueError):
    """Raised when a webhook delivery fails signature verification."""

    @classmethod
    def missing(cls) -> WebhookSignatureError:
        """Return an error for deliveries without a signature header."""
        return cls("missing X-Hub-Signature-256 or X-Hub-Signature header")

    @classmethod
    def malformed(cls, header: str) -> WebhookSignatureError:
        """Return an error for signatures not in ``algo=hexdigest`` form."""
        return cls(f"malformed signature header: {header!r}")

    @classmethod
    def mismatch(cls) -> WebhookSignatureError:
        """Return an error when the computed digest does not match."""
        return cls("payload signature does not match")
