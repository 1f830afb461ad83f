"""Database models for Job OS."""

from .app_settings import AppSettings
from .base import Base
from .contact import Contact
from .job import Job
from .job_draft import JobDraft
from .profile import Profile

__all__ = [
    "Base",
    "Job",
    "Profile",
    "Contact",
    "AppSettings",
    "JobDraft",
]
