"""Job summary endpoints.

Every generating route uses the same two-phase contract: a cache hit is
returned as a regular JSON `ApiResponse`; a miss streams NDJSON records
(`application/x-ndjson`) ending with exactly one `_complete` or `_error`
line. Failures detected before streaming starts are rendered by the global
exception handler with a mapped status code (503 when AI is not configured).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from core.config import get_settings
from core.error_handler import get_correlation_id
from crud.ai_summaries import get_summary_for_user, list_summaries_for_user
from dependencies.auth import CurrentUser
from dependencies.db import DbSession
from schemas.api import ApiResponse
from schemas.streaming import StreamRecord
from schemas.summaries import (
    CompareRequest,
    ComparisonArtifactOut,
    DocumentRequest,
    SummaryArtifactOut,
    SummaryRequestBody,
)
from services.ai.exceptions import (
    ListingNotFound,
    TransientBackendError,
    UnsupportedFormat,
    error_from_code,
)
from services.ai.models import CacheHit, CacheMiss
from services.ai.orchestrator import (
    SUMMARY_FAILED_MESSAGE,
    SummaryOrchestrator,
    get_summary_orchestrator,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/summaries", tags=["summaries"])

Orchestrator = Annotated[SummaryOrchestrator, Depends(get_summary_orchestrator)]

NDJSON_MEDIA_TYPE = "application/x-ndjson"


async def _ndjson(records: AsyncIterator[StreamRecord]) -> AsyncIterator[str]:
    async for record in records:
        yield record.to_ndjson()


def _stream_response(records: AsyncIterator[StreamRecord]) -> StreamingResponse:
    return StreamingResponse(
        _ndjson(records),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


def _summary_hit(hit: CacheHit[Any]) -> ApiResponse[SummaryArtifactOut]:
    return ApiResponse(
        success=True,
        data=SummaryArtifactOut.from_row(hit.artifact, cached=True),
        message="Summary retrieved from cache",
    )


async def _stream_miss(
    orchestrator: SummaryOrchestrator, db: DbSession, miss: CacheMiss
) -> StreamingResponse:
    context = await orchestrator.load_context(db, miss.user_id)
    return _stream_response(orchestrator.generate_stream(miss, context))


@router.post(
    "",
    response_model=ApiResponse[SummaryArtifactOut],
    summary="Get or create a job summary (non-streaming)",
)
async def create_summary(
    body: SummaryRequestBody,
    db: DbSession,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
) -> Any:
    prepared = await orchestrator.prepare_summary(
        db, body.to_request(), current_user.id
    )
    if isinstance(prepared, CacheHit):
        return _summary_hit(prepared)

    context = await orchestrator.load_context(db, current_user.id)
    terminal = await orchestrator.generate(prepared, context)
    if terminal.kind == "complete":
        if not isinstance(terminal.artifact, SummaryArtifactOut):
            raise TransientBackendError(SUMMARY_FAILED_MESSAGE)
        return ApiResponse(
            success=True, data=terminal.artifact, message="Summary created"
        )

    error = error_from_code(terminal.error_code or "", terminal.message)
    if terminal.payload is not None:
        # Generated but not stored: hand the content back with the failure.
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ApiResponse[dict[str, Any]](
                success=False,
                data=terminal.payload,
                message=error.message,
                error={
                    "type": error.error_code,
                    "correlation_id": get_correlation_id(),
                },
            ).model_dump(),
        )
    raise error


@router.post(
    "/stream",
    summary="Get a cached summary, or stream a new one as NDJSON",
    response_model=None,
)
async def stream_summary(
    body: SummaryRequestBody,
    db: DbSession,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
) -> ApiResponse[SummaryArtifactOut] | StreamingResponse:
    prepared = await orchestrator.prepare_summary(
        db, body.to_request(), current_user.id
    )
    if isinstance(prepared, CacheHit):
        return _summary_hit(prepared)
    return await _stream_miss(orchestrator, db, prepared)


@router.post(
    "/upload/stream",
    summary="Summarize an uploaded PDF, DOCX or text file",
    response_model=None,
)
async def stream_uploaded_summary(
    db: DbSession,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
    file: Annotated[
        UploadFile, File(description="PDF, DOCX or plain text job description")
    ],
) -> ApiResponse[SummaryArtifactOut] | StreamingResponse:
    # Configuration is checked before the upload body is read.
    orchestrator.ensure_configured()
    limit = get_settings().MAX_UPLOAD_BYTES
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise UnsupportedFormat(f"File too large (limit {limit} bytes)")

    request = DocumentRequest(
        filename=file.filename or "", content_type=file.content_type, data=data
    )
    prepared = await orchestrator.prepare_summary(db, request, current_user.id)
    if isinstance(prepared, CacheHit):
        return _summary_hit(prepared)
    return await _stream_miss(orchestrator, db, prepared)


@router.post(
    "/compare/stream",
    summary="Compare 2-3 listings; cached JSON or NDJSON stream",
    response_model=None,
)
async def stream_comparison(
    body: CompareRequest,
    db: DbSession,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
) -> ApiResponse[ComparisonArtifactOut] | StreamingResponse:
    prepared = await orchestrator.prepare_comparison(db, body, current_user.id)
    if isinstance(prepared, CacheHit):
        return ApiResponse(
            success=True,
            data=ComparisonArtifactOut.from_row(prepared.artifact, cached=True),
            message="Comparison retrieved from cache",
        )
    return await _stream_miss(orchestrator, db, prepared)


@router.get(
    "",
    response_model=ApiResponse[list[SummaryArtifactOut]],
    summary="List the caller's summaries, newest first",
)
async def list_summaries(
    db: DbSession,
    current_user: CurrentUser,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ApiResponse[list[SummaryArtifactOut]]:
    rows = await list_summaries_for_user(db, current_user.id, limit=limit)
    return ApiResponse(
        success=True,
        data=[SummaryArtifactOut.from_row(row, cached=True) for row in rows],
        message="Summaries retrieved",
    )


@router.get(
    "/{summary_id}",
    response_model=ApiResponse[SummaryArtifactOut],
    summary="Get one of the caller's summaries",
)
async def get_summary(
    summary_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> ApiResponse[SummaryArtifactOut]:
    row = await get_summary_for_user(db, current_user.id, summary_id)
    if row is None:
        raise ListingNotFound("Summary not found")
    return ApiResponse(
        success=True,
        data=SummaryArtifactOut.from_row(row, cached=True),
        message="Summary retrieved",
    )
