from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class UserProfile(Base):
    """Career profile used to personalize summaries."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Stored as JSON arrays so the table works on both Postgres and SQLite
    skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    job_titles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    years_of_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    resume_summary: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
