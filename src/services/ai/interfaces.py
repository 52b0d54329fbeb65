"""Service interfaces for the summary pipeline.

These protocols are the seams the orchestrator and resolver depend on, so
tests can inject fakes without patching module globals.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from schemas.summaries import ResumeParseResult, SkillSuggestions
from services.ai.models import GenerationContext, GenerationEvent, ResolvedInput


class ListingSourceProtocol(Protocol):
    """Read-only access to stored listings."""

    async def get_listing(self, listing_id: str) -> Any | None:
        """Return a listing-like object (title, company, description,
        source_url) or None."""
        ...

    async def get_listings(self, listing_ids: Sequence[str]) -> dict[str, Any]:
        """Return the listings found, keyed by id."""
        ...


class PageFetcherProtocol(Protocol):
    """Fetch a web page and return its visible text."""

    async def fetch_text(self, url: str) -> str:
        """Raise FetchFailed on any network, status or content problem."""
        ...


class DocumentExtractorProtocol(Protocol):
    def extract(self, data: bytes, filename: str, content_type: str | None) -> str:
        """Return document text; raise UnsupportedFormat when unreadable."""
        ...


class SummaryBackendProtocol(Protocol):
    """Generative backend producing structured payloads as a stream."""

    def stream_summary(
        self, resolved: ResolvedInput, context: GenerationContext
    ) -> AsyncIterator[GenerationEvent]:
        """Yield zero or more partial events then exactly one complete event."""
        ...

    def stream_comparison(
        self, resolved: ResolvedInput, context: GenerationContext
    ) -> AsyncIterator[GenerationEvent]:
        """Same contract as `stream_summary` for a multi-listing comparison."""
        ...

    async def suggest_skills(self, role: str) -> SkillSuggestions:
        ...

    async def parse_resume(self, text: str) -> ResumeParseResult:
        ...
