"""Cloud Run Admin API errors."""

from __future__ import annotations


class CloudRunAPIError(RuntimeError):
    """Raised when the Admin API returns an error or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(
        cls, operation: str, status_code: int, body: str
    ) -> CloudRunAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"Cloud Run {operation} failed with HTTP {status_code}: {body}",
            status_code=status_code,
        )

    @classmethod
    def timeout(cls, operation: str) -> CloudRunAPIError:
        """Return an error for request timeouts."""
        return cls(f"Cloud Run {operation} timed out")

    @classmethod
    def network_error(cls, operation: str, detail: str) -> CloudRunAPIError:
        """Return an error for transport failures."""
        return cls(f"Cloud Run {operation} network error: {detail}")

    @classmethod
    def credentials_unavailable(cls, operation: str, detail: str) -> CloudRunAPIError:
        """Return an error when no access token could be obtained."""
        return cls(f"Cloud Run {operation} has no credentials: {detail}")

    @classmethod
    def invalid_response(cls, operation: str, detail: str) -> CloudRunAPIError:
        """Return an error for bodies that do not decode."""
        return cls(f"Cloud Run {operation} returned an invalid body: {detail}")


class JobNotFoundError(CloudRunAPIError):
    """Raised when the addressed job does not exist."""

    @classmethod
    def for_job(cls, resource_name: str) -> JobNotFoundError:
        """Return an error naming the missing job."""
        return cls(f"job not found: {resource_name}", status_code=404)


class JobConflictError(CloudRunAPIError):
    """Raised when creating a job whose name is already taken."""

    @classmethod
    def for_job(cls, resource_name: str) -> JobConflictError:
        """Return an error naming the conflicting job."""
        return cls(f"job already exists: {resource_name}", status_code=409)


class MetadataError(RuntimeError):
    """Raised when the GCP metadata server cannot answer a query."""

    @classmethod
    def request_failed(cls, path: str, detail: str) -> MetadataError:
        """Return an error for a failed metadata lookup."""
        return cls(f"metadata lookup {path} failed: {detail}")
