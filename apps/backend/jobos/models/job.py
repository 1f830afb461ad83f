"""Job model for tracked applications."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, utcnow


class Job(Base, TimestampMixin):
    """Tracked job application."""

    __tablename__ = "jobs"

    # Primary Key - auto-increment
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Job Information
    company: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Saved", index=True
    )
    date_applied: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    source: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Weak reference to a Profile (no FK, deleting a profile never cascades)
    profile_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    # Job description and generated documents
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    resume_snapshot: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cover_letter_snapshot: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Keywords - Store as JSON array
    keywords: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, role='{self.role}', company='{self.company}', status='{self.status}')>"
