"""Response envelopes shared by every JobFinder route.

Cache hits, non-streaming results, profile helpers and errors all leave as
an `ApiResponse`. Only summary generation on a cache miss bypasses it and
streams NDJSON records instead (see `schemas.streaming`).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ApiResponse[T](BaseModel):
    """Envelope for JSON responses.

    `data` holds the artifact or helper result on success. On failure
    `error` carries at least `type` (the summary `error_code` or a generic
    category) and `correlation_id`; a persistence failure of a non-streaming
    summary still returns the generated payload in `data`.
    """

    success: bool = True
    data: T | None = None
    message: str = Field(default="OK", description="Human readable outcome")
    error: dict[str, Any] | None = None


class ErrorResponse(ApiResponse[None]):
    """Body rendered by the global exception handler."""

    success: bool = False
    message: str = "An error occurred"
