"""Read access to stored job listings."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.listings import Listing


async def get_listing_by_id(db: AsyncSession, listing_id: str) -> Listing | None:
    result = await db.execute(select(Listing).where(Listing.id == listing_id))
    return result.scalar_one_or_none()


async def get_listings_by_ids(
    db: AsyncSession, listing_ids: Sequence[str]
) -> dict[str, Listing]:
    """Fetch several listings in one query, keyed by id.

    Missing ids are simply absent from the returned mapping.
    """
    if not listing_ids:
        return {}
    result = await db.execute(select(Listing).where(Listing.id.in_(listing_ids)))
    return {listing.id: listing for listing in result.scalars().all()}
