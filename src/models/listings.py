"""Stored job listings, read by the summary pipeline."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Listing(Base):
    """A job posting imported from an external job board.

    Listing CRUD lives outside this service; the summary pipeline only reads
    title, company, description and the original posting URL.
    """

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    company: Mapped[str | None] = mapped_column(String(300), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_url: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Original posting page, fetched for full text"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title!r})>"
