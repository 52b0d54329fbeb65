"""Domain exceptions for the job summary pipeline.

These exceptions provide a taxonomy for deterministic error handling across
input resolution, generation and persistence. The API layer maps them to
HTTP status codes (synchronous failures) or to terminal NDJSON error records
(failures after streaming has begun). Each exception carries a stable
`error_code` for clients and log tagging.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SummaryServiceError(Exception):
    """Base class for summary pipeline domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class NotConfigured(SummaryServiceError):
    def __init__(self, message: str = "AI summarization is not configured") -> None:
        super().__init__(message=message, error_code="not_configured")


class ListingNotFound(SummaryServiceError):
    def __init__(self, message: str = "Listing not found") -> None:
        super().__init__(message=message, error_code="not_found")


class FetchFailed(SummaryServiceError):
    def __init__(self, message: str = "Could not fetch URL") -> None:
        super().__init__(message=message, error_code="fetch_failed")


class UnsupportedFormat(SummaryServiceError):
    def __init__(self, message: str = "Unsupported document format") -> None:
        super().__init__(message=message, error_code="unsupported_format")


class EmptyInput(SummaryServiceError):
    def __init__(self, message: str = "No text content found") -> None:
        super().__init__(message=message, error_code="empty_input")


class InvalidComparisonRequest(SummaryServiceError):
    def __init__(
        self, message: str = "Exactly 2 or 3 distinct listing IDs are required"
    ) -> None:
        super().__init__(message=message, error_code="invalid_comparison")


class RateLimited(SummaryServiceError):
    def __init__(
        self, message: str = "AI service is busy. Please try again shortly."
    ) -> None:
        super().__init__(message=message, error_code="rate_limited")


class TransientBackendError(SummaryServiceError):
    def __init__(self, message: str = "Operation failed. Please try again.") -> None:
        super().__init__(message=message, error_code="backend_error")


class PersistenceError(SummaryServiceError):
    def __init__(
        self, message: str = "Summary was generated but could not be saved"
    ) -> None:
        super().__init__(message=message, error_code="persistence_failed")


_ERRORS_BY_CODE: dict[str, type[SummaryServiceError]] = {
    "not_configured": NotConfigured,
    "not_found": ListingNotFound,
    "fetch_failed": FetchFailed,
    "unsupported_format": UnsupportedFormat,
    "empty_input": EmptyInput,
    "invalid_comparison": InvalidComparisonRequest,
    "rate_limited": RateLimited,
    "backend_error": TransientBackendError,
    "persistence_failed": PersistenceError,
}


def error_from_code(error_code: str, message: str | None = None) -> SummaryServiceError:
    """Rebuild a domain error from a terminal stream record."""
    cls = _ERRORS_BY_CODE.get(error_code, TransientBackendError)
    return cls(message) if message else cls()
