"""Draft (in-progress job form) schemas.

``DraftState`` is the serialized form state of a ``JobWorkspace``: the job
fields being edited, the keyword set, the latest ATS analysis and one
``DocumentState`` per generated document.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from jobos.schemas.analysis import ATSAnalysis
from jobos.schemas.job import JobStatus

DocumentKind = Literal["resume", "cover_letter"]
DocumentStage = Literal["empty", "drafted", "refined", "saved"]


class DocumentState(BaseModel):
    """Generated document text plus its manual-edit buffer."""

    text: str = ""
    stage: DocumentStage = "empty"
    is_editing: bool = False
    edit_buffer: str = ""


class DraftState(BaseModel):
    """Everything a job form holds before it is saved."""

    company: str = ""
    role: str = ""
    location: str = ""
    status: JobStatus = "Saved"
    date_applied: datetime | None = None
    source: str = ""
    profile_id: int | None = None
    description: str = ""
    notes: str = ""
    keywords: list[str] = Field(default_factory=list)
    resume: DocumentState = Field(default_factory=DocumentState)
    cover_letter: DocumentState = Field(default_factory=DocumentState)
    ats_analysis: ATSAnalysis | None = None


class DraftCreate(BaseModel):
    """Start a draft, either blank or from an existing job."""

    job_id: int | None = None


class DraftFieldsUpdate(BaseModel):
    """Plain form field edits (all optional)."""

    company: str | None = None
    role: str | None = None
    location: str | None = None
    status: JobStatus | None = None
    date_applied: datetime | None = None
    source: str | None = None
    profile_id: int | None = None
    description: str | None = None
    notes: str | None = None


class GenerateDocumentRequest(BaseModel):
    """Profile to generate from; falls back to the draft's selected profile."""

    profile_id: int | None = None


class RefineRequest(BaseModel):
    """Free-form refinement instructions."""

    instructions: str = ""


class PasteRequest(BaseModel):
    """Text pasted into the job description field."""

    text: str


class KeywordRequest(BaseModel):
    """Single keyword added or removed by hand."""

    keyword: str = Field(..., min_length=1, max_length=255)


class EditTextRequest(BaseModel):
    """New contents of a document edit buffer."""

    text: str


class DraftResponse(BaseModel):
    """Schema for draft response."""

    id: int
    job_id: int | None
    state: DraftState
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
