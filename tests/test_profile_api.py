"""Skill suggestions and resume parsing routes."""

import pytest
from sqlalchemy import select

from models.user_profiles import UserProfile
from schemas.summaries import ResumeParseResult
from services.ai.document_extractor import DOCX_CONTENT_TYPE
from tests.fixtures.summary_fixtures import ScriptedBackend, docx_bytes


pytest_plugins = ("tests.fixtures.summary_fixtures",)

RESUME = ResumeParseResult(
    skills=["Python", "Kubernetes"],
    job_titles=["Platform Engineer"],
    resume_summary="Platform engineer with five years of Python.",
)


@pytest.mark.asyncio
async def test_suggest_skills(async_client, install_orchestrator):
    install_orchestrator(ScriptedBackend(skills=["SQL", "sql", "Excel"]))

    resp = await async_client.post(
        "/api/v1/profile/suggest-skills", json={"role": "Data Analyst"}
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["skills"] == ["SQL", "Excel"]


@pytest.mark.asyncio
async def test_suggest_skills_not_configured(async_client, install_orchestrator):
    install_orchestrator(ScriptedBackend(), configured=False)
    resp = await async_client.post(
        "/api/v1/profile/suggest-skills", json={"role": "Data Analyst"}
    )
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_parse_resume_without_saving(
    async_client, install_orchestrator, db_session
):
    install_orchestrator(ScriptedBackend(resume=RESUME))

    resp = await async_client.post(
        "/api/v1/resume/parse", json={"text": "Five years of Python on Kubernetes"}
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["job_titles"] == ["Platform Engineer"]
    result = await db_session.execute(select(UserProfile))
    assert result.scalars().first() is None


@pytest.mark.asyncio
async def test_parse_resume_saves_profile(
    async_client, install_orchestrator, session_factory, current_user
):
    install_orchestrator(ScriptedBackend(resume=RESUME))

    resp = await async_client.post(
        "/api/v1/resume/parse",
        json={"text": "Five years of Python", "save_to_profile": True},
    )

    assert resp.status_code == 200
    async with session_factory() as session:
        profile = await session.get(UserProfile, current_user.id)
    assert profile is not None
    assert profile.skills == ["Python", "Kubernetes"]
    assert profile.job_titles == ["Platform Engineer"]
    assert profile.resume_summary == RESUME.resume_summary


@pytest.mark.asyncio
async def test_blank_resume_text_is_400(async_client, install_orchestrator):
    backend = ScriptedBackend(resume=RESUME)
    install_orchestrator(backend)

    resp = await async_client.post("/api/v1/resume/parse", json={"text": "   "})

    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "empty_input"
    assert backend.calls == 0


@pytest.mark.asyncio
async def test_resume_upload(async_client, install_orchestrator):
    install_orchestrator(ScriptedBackend(resume=RESUME))

    resp = await async_client.post(
        "/api/v1/resume/upload",
        files={"file": ("cv.txt", b"Platform engineer, Python", "text/plain")},
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["skills"] == ["Python", "Kubernetes"]


@pytest.mark.asyncio
async def test_resume_upload_reads_docx(async_client, install_orchestrator):
    backend = ScriptedBackend(resume=RESUME)
    install_orchestrator(backend)

    resp = await async_client.post(
        "/api/v1/resume/upload",
        files={
            "file": (
                "cv.docx",
                docx_bytes("Platform Engineer", "Python, Kubernetes"),
                DOCX_CONTENT_TYPE,
            )
        },
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["job_titles"] == ["Platform Engineer"]
    assert backend.resume_texts == ["Platform Engineer\nPython, Kubernetes"]


@pytest.mark.asyncio
async def test_resume_upload_rejects_legacy_word_documents(
    async_client, install_orchestrator
):
    backend = ScriptedBackend(resume=RESUME)
    install_orchestrator(backend)
    resp = await async_client.post(
        "/api/v1/resume/upload",
        files={"file": ("cv.doc", b"\xd0\xcf\x11\xe0", "application/msword")},
    )
    assert resp.status_code == 415
    assert resp.json()["error"]["type"] == "unsupported_format"
    assert backend.calls == 0
