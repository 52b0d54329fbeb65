"""Persisted single-listing job summaries."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AISummary(Base):
    """A generated summary, written once per (user, cache key) and never updated.

    Lookups are always scoped to both the cache key and the owning user.
    """

    __tablename__ = "ai_summaries"
    __table_args__ = (Index("ix_ai_summaries_user_cache_key", "user_id", "cache_key"),)

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    cache_key: Mapped[str] = mapped_column(
        String(64), nullable=False, comment="sha256 over user id and canonical text"
    )
    input_text_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, comment="sha256 of canonical text, unscoped"
    )
    payload: Mapped[Any] = mapped_column(
        JSON, nullable=False, comment="JobSummary JSON document"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    def __repr__(self) -> str:
        return f"<AISummary(id={self.id}, user_id={self.user_id})>"
