"""JobDraft model for in-progress job forms.

A draft holds the serialized workspace state (form fields, keywords, ATS
analysis, document edit buffers) between requests. Saving a draft writes a
Job and deletes the draft.
"""

from typing import Any, Optional

from sqlalchemy import JSON, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class JobDraft(Base, TimestampMixin):
    """Unsaved job form state."""

    __tablename__ = "job_drafts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Job being edited, None for a new job
    job_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    # Serialized DraftState
    state: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<JobDraft(id={self.id}, job_id={self.job_id})>"
