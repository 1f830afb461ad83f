"""Profile request/response schemas.

Nested entries (experience, projects, education, certifications) carry a
UUID generated when the entry is created. The id stays the same across
edits and is what removal and updates match on.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

WorkPreference = Literal["Remote", "On-Site", "Hybrid"]
ProfileSection = Literal["experience", "projects", "education", "certifications"]


class ExperienceEntry(BaseModel):
    """Work history entry."""

    id: UUID = Field(default_factory=uuid4)
    company: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    description: str = ""


class ProjectEntry(BaseModel):
    """Personal or side project."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    description: str = ""
    url: str | None = None


class EducationEntry(BaseModel):
    """Degree or course of study."""

    id: UUID = Field(default_factory=uuid4)
    degree: str = ""
    institution: str = ""
    start_date: str = ""
    end_date: str = ""


class CertificationEntry(BaseModel):
    """Professional certification."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    issuer: str = ""
    year: str = ""
    url: str | None = None


SECTION_ENTRY_TYPES: dict[str, type[BaseModel]] = {
    "experience": ExperienceEntry,
    "projects": ProjectEntry,
    "education": EducationEntry,
    "certifications": CertificationEntry,
}


class ContactInfo(BaseModel):
    """Candidate contact details, all optional."""

    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None


class HRData(BaseModel):
    """Availability details shared with recruiters."""

    work_preference: WorkPreference | None = None
    notice_period: str | None = None


def unique_skills(skills: list[str]) -> list[str]:
    """Trim skills and drop blanks and duplicates, keeping first occurrence."""
    result: list[str] = []
    for skill in skills:
        skill = skill.strip()
        if skill and skill not in result:
            result.append(skill)
    return result


class ProfileBase(BaseModel):
    """Shared profile fields."""

    name: str = Field(..., min_length=1, max_length=255)
    target_role: str = Field("", max_length=255)
    intro: str = ""
    skills: list[str] = Field(default_factory=list)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    hr_data: HRData = Field(default_factory=HRData)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)
    photo: str | None = None

    @field_validator("skills")
    @classmethod
    def dedupe_skills(cls, value: list[str]) -> list[str]:
        return unique_skills(value)


class ProfileCreate(ProfileBase):
    """Schema for creating a profile."""

    pass


class ProfileUpdate(BaseModel):
    """Schema for updating a profile (all fields optional)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    target_role: str | None = Field(None, max_length=255)
    intro: str | None = None
    skills: list[str] | None = None
    contact_info: ContactInfo | None = None
    hr_data: HRData | None = None
    experience: list[ExperienceEntry] | None = None
    projects: list[ProjectEntry] | None = None
    education: list[EducationEntry] | None = None
    certifications: list[CertificationEntry] | None = None
    photo: str | None = None

    @field_validator("skills")
    @classmethod
    def dedupe_skills(cls, value: list[str] | None) -> list[str] | None:
        return unique_skills(value) if value is not None else None


class ProfileResponse(ProfileBase):
    """Schema for profile response."""

    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SkillRequest(BaseModel):
    """Schema for adding or removing a single skill."""

    skill: str = Field(..., min_length=1, max_length=255)


class ResumeImportRequest(BaseModel):
    """Raw resume text to turn into an unsaved profile."""

    raw_text: str = Field(..., min_length=1, description="Full resume text pasted by the user")
