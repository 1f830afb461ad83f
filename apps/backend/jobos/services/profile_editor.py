"""Edits to a profile's skills and nested section entries.

Sections are stored as JSON lists on the ``Profile`` row, so every edit
assigns a new list to the attribute rather than mutating it in place.
"""

import logging
from typing import Any
from uuid import UUID

from jobos.models import Profile
from jobos.schemas.profile import SECTION_ENTRY_TYPES, ProfileBase, ProfileResponse

logger = logging.getLogger(__name__)


class EntryNotFoundError(LookupError):
    """Raised when a section entry id does not exist on the profile."""


def profile_values(data: ProfileBase) -> dict[str, Any]:
    """Column values for a Profile row (UUIDs as strings)."""
    return data.model_dump(mode="json")


def to_profile_schema(profile: Profile) -> ProfileResponse:
    """Validated view of a Profile row, as used by prompt builders."""
    return ProfileResponse.model_validate(profile)


def add_skill(profile: Profile, skill: str) -> bool:
    """Append a skill unless already present. Returns True when added."""
    skill = skill.strip()
    skills = list(profile.skills or [])
    if not skill or skill in skills:
        return False
    profile.skills = skills + [skill]
    return True


def remove_skill(profile: Profile, skill: str) -> bool:
    """Remove a skill by exact match. Returns True when removed."""
    skills = list(profile.skills or [])
    if skill not in skills:
        return False
    profile.skills = [s for s in skills if s != skill]
    return True


def _entries(profile: Profile, section: str) -> list[dict[str, Any]]:
    if section not in SECTION_ENTRY_TYPES:
        raise ValueError(f"Unknown profile section: {section}")
    return [dict(entry) for entry in (getattr(profile, section) or [])]


def upsert_entry(profile: Profile, section: str, entry: dict[str, Any]) -> dict[str, Any]:
    """Add an entry to a section, or replace the one with the same id.

    Entries without an id get a fresh UUID.

    Returns:
        The stored entry

    Raises:
        ValueError: Unknown section
        pydantic.ValidationError: Entry does not fit the section's schema
    """
    entries = _entries(profile, section)
    stored = SECTION_ENTRY_TYPES[section].model_validate(entry).model_dump(mode="json")

    for index, existing in enumerate(entries):
        if existing.get("id") == stored["id"]:
            entries[index] = stored
            break
    else:
        entries.append(stored)

    setattr(profile, section, entries)
    return stored


def update_entry(
    profile: Profile,
    section: str,
    entry_id: UUID,
    changes: dict[str, Any],
) -> dict[str, Any]:
    """Merge changes into an existing entry, keeping its id.

    Raises:
        EntryNotFoundError: No entry with that id
    """
    for existing in _entries(profile, section):
        if existing.get("id") == str(entry_id):
            merged = {**existing, **changes, "id": str(entry_id)}
            return upsert_entry(profile, section, merged)
    raise EntryNotFoundError(f"{section} entry {entry_id} not found")


def remove_entry(profile: Profile, section: str, entry_id: UUID) -> bool:
    """Remove an entry by id. Returns True when something was removed."""
    entries = _entries(profile, section)
    kept = [entry for entry in entries if entry.get("id") != str(entry_id)]
    if len(kept) == len(entries):
        return False
    setattr(profile, section, kept)
    logger.info(f"Removed {section} entry {entry_id} from profile {profile.id}")
    return True
