"""Contact request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ContactStatus = Literal["contacted", "replied", "interviewing", "ghosted", "rejected", "offer"]
RelationshipStrength = Literal["weak", "moderate", "strong"]


class ContactBase(BaseModel):
    """Base schema for contacts."""

    name: str = Field(..., min_length=1, max_length=255)
    role: str = Field("", max_length=255)
    company: str = Field("", max_length=255)
    email: str | None = Field(None, max_length=255)
    linkedin: str | None = Field(None, max_length=512)
    status: ContactStatus = "contacted"
    relationship_strength: RelationshipStrength = "weak"
    notes: str = ""


class ContactCreate(ContactBase):
    """Schema for creating a contact."""

    pass


class ContactUpdate(BaseModel):
    """Schema for updating a contact (all fields optional)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    role: str | None = Field(None, max_length=255)
    company: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    linkedin: str | None = Field(None, max_length=512)
    status: ContactStatus | None = None
    relationship_strength: RelationshipStrength | None = None
    notes: str | None = None


class ContactResponse(ContactBase):
    """Schema for contact response."""

    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
