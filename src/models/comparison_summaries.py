"""Persisted multi-listing comparison summaries."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ComparisonSummary(Base):
    __tablename__ = "comparison_summaries"
    __table_args__ = (
        Index("ix_comparison_summaries_user_cache_key", "user_id", "cache_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    cache_key: Mapped[str] = mapped_column(String(64), nullable=False)
    listing_ids_key: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Sorted listing ids joined by ','"
    )
    listing_ids: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, comment="Listing ids in request order"
    )
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    def __repr__(self) -> str:
        return f"<ComparisonSummary(id={self.id}, key={self.listing_ids_key})>"
