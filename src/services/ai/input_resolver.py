"""Input resolution: turn a generation request into canonical text.

Every request kind ends up as whitespace-normalized text capped at
MAX_INPUT_CHARS. That text is what gets hashed for the cache key and what
the prompt is built from, so two requests that resolve to the same text
share a cache entry regardless of how they were submitted.

The resolver is read-only. A URL fetch is its only outbound call and is
made once with a bounded timeout; a slow or dead source should fail fast.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from crud.listings import get_listing_by_id, get_listings_by_ids
from schemas.summaries import (
    CompareRequest,
    DocumentRequest,
    ListingRequest,
    SingleRequest,
    TextRequest,
    UrlRequest,
)
from services.ai.document_extractor import DocumentTextExtractor
from services.ai.exceptions import (
    EmptyInput,
    FetchFailed,
    InvalidComparisonRequest,
    ListingNotFound,
)
from services.ai.html_extractor import (
    HTMLExtractionService,
    html_to_text,
    normalize_whitespace,
)
from services.ai.interfaces import (
    DocumentExtractorProtocol,
    ListingSourceProtocol,
    PageFetcherProtocol,
)
from services.ai.models import ResolvedInput, ResolvedListing


logger = logging.getLogger(__name__)

COMPARISON_SNIPPET_CHARS = 4000
MIN_COMPARISON_ITEMS = 2
MAX_COMPARISON_ITEMS = 3


def validate_comparison_ids(item_ids: Sequence[str]) -> list[str]:
    """Return trimmed ids in request order, or raise InvalidComparisonRequest."""
    ids = [str(i).strip() for i in item_ids]
    if any(not i for i in ids):
        raise InvalidComparisonRequest("Listing IDs must not be blank")
    if not MIN_COMPARISON_ITEMS <= len(ids) <= MAX_COMPARISON_ITEMS:
        raise InvalidComparisonRequest()
    if len(set(ids)) != len(ids):
        raise InvalidComparisonRequest("Listing IDs must be distinct")
    return ids


class DbListingSource(ListingSourceProtocol):
    """Listing source backed by the `listings` table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_listing(self, listing_id: str) -> Any | None:
        return await get_listing_by_id(self._db, listing_id)

    async def get_listings(self, listing_ids: Sequence[str]) -> dict[str, Any]:
        return await get_listings_by_ids(self._db, listing_ids)


class InputResolver:
    def __init__(
        self,
        listings: ListingSourceProtocol,
        page_fetcher: PageFetcherProtocol | None = None,
        document_extractor: DocumentExtractorProtocol | None = None,
        max_chars: int | None = None,
    ) -> None:
        self.listings = listings
        self.page_fetcher = page_fetcher or HTMLExtractionService()
        self.document_extractor = document_extractor or DocumentTextExtractor()
        self.max_chars = max_chars or get_settings().MAX_INPUT_CHARS

    def _canonical(self, raw: str) -> str:
        text = normalize_whitespace(raw)[: self.max_chars].strip()
        if not text:
            raise EmptyInput()
        return text

    async def resolve(self, request: SingleRequest) -> ResolvedInput:
        """Resolve a single-summary request.

        Raises:
            ListingNotFound: listing id does not exist
            FetchFailed: URL could not be fetched or had no text
            UnsupportedFormat: document format or size outside policy
            EmptyInput: nothing left after trimming
        """
        if isinstance(request, TextRequest):
            return ResolvedInput(text=self._canonical(request.text))
        if isinstance(request, ListingRequest):
            return await self._resolve_listing(request.listing_id)
        if isinstance(request, UrlRequest):
            text = await self.page_fetcher.fetch_text(request.url)
            return ResolvedInput(text=self._canonical(text))
        if isinstance(request, DocumentRequest):
            text = self.document_extractor.extract(
                request.data, request.filename, request.content_type
            )
            return ResolvedInput(text=self._canonical(text))
        raise TypeError(f"Unsupported request kind: {type(request).__name__}")

    async def _resolve_listing(self, listing_id: str) -> ResolvedInput:
        listing = await self.listings.get_listing(listing_id)
        if listing is None:
            raise ListingNotFound()

        title = getattr(listing, "title", None) or None
        company = getattr(listing, "company", None) or None
        description = getattr(listing, "description", None) or ""
        fallback_parts = [
            part.strip()
            for part in (title or "", company or "", html_to_text(description))
            if part and part.strip()
        ]
        fallback = "\n\n".join(fallback_parts)

        source_url = getattr(listing, "source_url", None)
        page_text = ""
        if source_url:
            try:
                page_text = await self.page_fetcher.fetch_text(source_url)
            except FetchFailed as e:
                logger.info(
                    "Source page fetch failed for listing %s, using stored "
                    "description: %s",
                    listing_id,
                    e.message,
                )

        if page_text.strip():
            return ResolvedInput(
                text=self._canonical(page_text),
                title=title,
                company=company,
                from_listing=True,
                from_source_page=True,
            )
        return ResolvedInput(
            text=self._canonical(fallback),
            title=title,
            company=company,
            from_listing=True,
            from_source_page=False,
        )

    async def resolve_comparison(self, request: CompareRequest) -> ResolvedInput:
        """Resolve every listing of a comparison, all or nothing."""
        ids = validate_comparison_ids(request.item_ids)
        found = await self.listings.get_listings(ids)
        missing = [i for i in ids if i not in found]
        if missing:
            raise ListingNotFound(f"Listing not found: {', '.join(missing)}")

        items: list[ResolvedListing] = []
        for listing_id in ids:
            listing = found[listing_id]
            snippet = html_to_text(getattr(listing, "description", None) or "")
            items.append(
                ResolvedListing(
                    listing_id=listing_id,
                    title=getattr(listing, "title", None) or "",
                    company=getattr(listing, "company", None) or None,
                    snippet=snippet[:COMPARISON_SNIPPET_CHARS],
                )
            )

        text = "\n\n".join(
            f"{item.title}\n{item.company or ''}\n{item.snippet}" for item in items
        )
        return ResolvedInput(
            text=self._canonical(text),
            from_listing=True,
            item_ids=ids,
            items=items,
        )
