"""Job-related Pydantic schemas.

This module defines request and response schemas for Job endpoints,
including job creation, updates, status changes and list responses.
"""

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, Field, field_validator

JobStatus = Literal["Saved", "Applied", "Interview", "Offer", "Rejected", "Ghosted"]
JOB_STATUSES: tuple[str, ...] = get_args(JobStatus)


def unique_keywords(keywords: list[str]) -> list[str]:
    """Trim keywords and drop blanks and exact duplicates, keeping order."""
    seen: list[str] = []
    for keyword in keywords:
        keyword = keyword.strip()
        if keyword and keyword not in seen:
            seen.append(keyword)
    return seen


class JobBase(BaseModel):
    """Shared job fields."""

    company: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=255)
    location: str = Field("", max_length=255)
    status: JobStatus = "Saved"
    date_applied: datetime | None = None
    source: str = Field("", max_length=255)
    profile_id: int | None = None
    description: str = ""
    resume_snapshot: str = ""
    cover_letter_snapshot: str = ""
    keywords: list[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("keywords")
    @classmethod
    def dedupe_keywords(cls, value: list[str]) -> list[str]:
        return unique_keywords(value)


class JobCreate(JobBase):
    """Schema for creating a new job."""

    pass


class JobUpdate(BaseModel):
    """Schema for updating a job (all fields optional)."""

    company: str | None = Field(None, min_length=1, max_length=255)
    role: str | None = Field(None, min_length=1, max_length=255)
    location: str | None = Field(None, max_length=255)
    status: JobStatus | None = None
    date_applied: datetime | None = None
    source: str | None = Field(None, max_length=255)
    profile_id: int | None = None
    description: str | None = None
    resume_snapshot: str | None = None
    cover_letter_snapshot: str | None = None
    keywords: list[str] | None = None
    notes: str | None = None

    @field_validator("keywords")
    @classmethod
    def dedupe_keywords(cls, value: list[str] | None) -> list[str] | None:
        return unique_keywords(value) if value is not None else None


class JobStatusUpdate(BaseModel):
    """Schema for a status-only change from the tracker table."""

    status: JobStatus


class JobResponse(BaseModel):
    """Schema for job response with all fields."""

    id: int
    company: str
    role: str
    location: str
    status: JobStatus
    date_applied: datetime
    source: str
    profile_id: int | None = None
    description: str
    resume_snapshot: str
    cover_letter_snapshot: str
    keywords: list[str]
    notes: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JobListResponse(BaseModel):
    """Schema for filtered job list response."""

    total: int
    jobs: list[JobResponse]
    page: int = 1
    page_size: int = 50
    ghosted: int = Field(0, description="Jobs moved to Ghosted by this request's sweep")


class DocumentTextResponse(BaseModel):
    """Plain-text document with the filename to export it under."""

    text: str
    filename: str
