"""Summary repository: find and insert cached summary artifacts.

Artifacts are immutable once written. Lookups are scoped to (cache key,
user) and optionally bounded by a `since` timestamp that implements the
cache TTL; rows older than `since` are ignored, not deleted. When several
rows match (two concurrent generations for the same key both succeeded),
the newest one wins.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.ai_summaries import AISummary
from models.comparison_summaries import ComparisonSummary
from services.ai.cache_keys import listing_ids_key


async def find_summary(
    db: AsyncSession,
    user_id: str,
    cache_key: str,
    since: datetime | None = None,
) -> AISummary | None:
    """Return the newest summary for (user, key), or None.

    Args:
        db: Database session
        user_id: Owner of the summary
        cache_key: Key produced by `cache_keys.key_for`
        since: Ignore rows created before this instant

    Returns:
        AISummary instance or None if nothing usable is cached
    """
    query = select(AISummary).where(
        AISummary.cache_key == cache_key, AISummary.user_id == user_id
    )
    if since is not None:
        query = query.where(AISummary.created_at >= since)
    query = query.order_by(AISummary.created_at.desc()).limit(1)

    result = await db.execute(query)
    return result.scalars().first()


async def insert_summary(
    db: AsyncSession,
    user_id: str,
    cache_key: str,
    input_text_hash: str,
    payload: dict[str, Any],
) -> AISummary:
    """Persist a finished summary.

    Args:
        db: Database session
        user_id: Owner of the summary
        cache_key: User-scoped cache key
        input_text_hash: Unscoped digest of the canonical text
        payload: Complete JobSummary document

    Returns:
        The stored AISummary with id and created_at populated
    """
    summary = AISummary(
        user_id=user_id,
        cache_key=cache_key,
        input_text_hash=input_text_hash,
        payload=payload,
    )
    db.add(summary)
    await db.commit()
    await db.refresh(summary)
    return summary


async def find_comparison(
    db: AsyncSession,
    user_id: str,
    cache_key: str,
    since: datetime | None = None,
) -> ComparisonSummary | None:
    """Return the newest comparison for (user, key), or None."""
    query = select(ComparisonSummary).where(
        ComparisonSummary.cache_key == cache_key,
        ComparisonSummary.user_id == user_id,
    )
    if since is not None:
        query = query.where(ComparisonSummary.created_at >= since)
    query = query.order_by(ComparisonSummary.created_at.desc()).limit(1)

    result = await db.execute(query)
    return result.scalars().first()


async def insert_comparison(
    db: AsyncSession,
    user_id: str,
    cache_key: str,
    listing_ids: Sequence[str],
    payload: dict[str, Any],
) -> ComparisonSummary:
    """Persist a finished comparison; `listing_ids` keeps request order."""
    comparison = ComparisonSummary(
        user_id=user_id,
        cache_key=cache_key,
        listing_ids_key=listing_ids_key(listing_ids),
        listing_ids=list(listing_ids),
        payload=payload,
    )
    db.add(comparison)
    await db.commit()
    await db.refresh(comparison)
    return comparison


async def get_summary_for_user(
    db: AsyncSession, user_id: str, summary_id: UUID
) -> AISummary | None:
    result = await db.execute(
        select(AISummary).where(
            AISummary.id == summary_id, AISummary.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def list_summaries_for_user(
    db: AsyncSession, user_id: str, limit: int = 20
) -> list[AISummary]:
    """List a user's summaries, newest first."""
    result = await db.execute(
        select(AISummary)
        .where(AISummary.user_id == user_id)
        .order_by(AISummary.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
