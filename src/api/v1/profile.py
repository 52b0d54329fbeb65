"""Profile helpers backed by the generation backend: skill suggestions and
resume parsing."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile

from core.config import get_settings
from crud.user_profiles import upsert_profile_skills
from dependencies.auth import CurrentUser
from dependencies.db import DbSession
from schemas.api import ApiResponse
from schemas.summaries import (
    ResumeParseRequest,
    ResumeParseResult,
    SkillSuggestionRequest,
    SkillSuggestions,
)
from services.ai.document_extractor import DocumentTextExtractor
from services.ai.exceptions import EmptyInput, UnsupportedFormat
from services.ai.orchestrator import SummaryOrchestrator, get_summary_orchestrator


router = APIRouter(tags=["profile"])

Orchestrator = Annotated[SummaryOrchestrator, Depends(get_summary_orchestrator)]


@router.post(
    "/profile/suggest-skills",
    response_model=ApiResponse[SkillSuggestions],
)
async def suggest_skills(
    body: SkillSuggestionRequest,
    orchestrator: Orchestrator,
) -> ApiResponse[SkillSuggestions]:
    """Suggest 8-12 skills for a job role."""
    suggestions = await orchestrator.suggest_skills(body.role)
    return ApiResponse(success=True, data=suggestions, message="Skills suggested")


async def _parse_and_maybe_save(
    text: str,
    save_to_profile: bool,
    db: DbSession,
    user_id: str,
    orchestrator: SummaryOrchestrator,
) -> ApiResponse[ResumeParseResult]:
    if not text.strip():
        raise EmptyInput("Resume has no text")
    result = await orchestrator.parse_resume(text)
    if save_to_profile:
        await upsert_profile_skills(
            db,
            user_id,
            skills=result.skills,
            job_titles=result.job_titles,
            resume_summary=result.resume_summary,
        )
    return ApiResponse(success=True, data=result, message="Resume parsed")


@router.post("/resume/parse", response_model=ApiResponse[ResumeParseResult])
async def parse_resume(
    body: ResumeParseRequest,
    db: DbSession,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
) -> ApiResponse[ResumeParseResult]:
    """Extract skills, job titles and a summary from resume text."""
    return await _parse_and_maybe_save(
        body.text, body.save_to_profile, db, current_user.id, orchestrator
    )


@router.post("/resume/upload", response_model=ApiResponse[ResumeParseResult])
async def parse_resume_upload(
    db: DbSession,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
    file: Annotated[UploadFile, File(description="Resume as PDF, DOCX or plain text")],
    save_to_profile: Annotated[bool, Query()] = False,
) -> ApiResponse[ResumeParseResult]:
    orchestrator.ensure_configured()
    limit = get_settings().MAX_UPLOAD_BYTES
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise UnsupportedFormat(f"File too large (limit {limit} bytes)")
    text = DocumentTextExtractor(max_bytes=limit).extract(
        data, file.filename or "", file.content_type
    )
    return await _parse_and_maybe_save(
        text, save_to_profile, db, current_user.id, orchestrator
    )
