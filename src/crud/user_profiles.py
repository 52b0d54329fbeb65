"""CRUD helpers for user career profiles."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user_profiles import UserProfile


async def get_profile_by_user_id(db: AsyncSession, user_id: str) -> UserProfile | None:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def upsert_profile_skills(
    db: AsyncSession,
    user_id: str,
    skills: list[str],
    job_titles: list[str] | None = None,
    resume_summary: str | None = None,
) -> UserProfile:
    """Create or update the profile fields populated by resume parsing.

    Existing job titles and resume summary are kept when the new values are
    empty.
    """
    profile = await get_profile_by_user_id(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id, skills=[], job_titles=[])
        db.add(profile)

    profile.skills = list(skills)
    if job_titles:
        profile.job_titles = list(job_titles)
    if resume_summary:
        profile.resume_summary = resume_summary

    await db.commit()
    await db.refresh(profile)
    return profile
