"""Profile model for reusable candidate personas.

Nested sections (experience, projects, education, certifications) are stored
as JSON arrays on the profile row. Every entry carries its own UUID assigned
when the entry is created, independent of the profile's integer id, so
entries keep a stable identity while the profile is still being edited.
"""

from typing import Any, List, Optional

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    """Candidate profile used to tailor resumes and cover letters."""

    __tablename__ = "profiles"

    # Primary Key - auto-increment
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Basic Information
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    target_role: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    intro: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Ordered, unique skill names
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Contact and HR data
    contact_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    hr_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Nested sections, each entry a dict with a string UUID "id"
    experience: Mapped[List[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    projects: Mapped[List[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    education: Mapped[List[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    certifications: Mapped[List[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Embedded image data (data URL or plain URL)
    photo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name='{self.name}', target_role='{self.target_role}')>"
