"""Analysis schemas: keyword extraction and ATS scoring."""

from pydantic import BaseModel, Field


class ATSAnalysis(BaseModel):
    """ATS match result for a (resume, job description) pair.

    Derived data, never stored on its own. ``missing_keywords`` is asked to
    hold at most 5 items by the prompt; the parser passes longer lists through.
    """

    score: int = Field(0, ge=0, le=100)
    feedback: str = ""
    missing_keywords: list[str] = Field(default_factory=list)


class KeywordExtractionRequest(BaseModel):
    """Schema for a stateless keyword extraction call."""

    job_description: str = Field(..., min_length=1)


class KeywordExtractionResponse(BaseModel):
    """Extracted keywords for a job description."""

    keywords: list[str]


class ATSScoreRequest(BaseModel):
    """Schema for a stateless ATS scoring call."""

    resume_text: str = Field(..., min_length=1)
    job_description: str = Field(..., min_length=1)
