"""Profiles API router.

CRUD for candidate profiles, AI resume import, and targeted edits to
skills and to the nested experience/projects/education/certifications
sections.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.database import get_db
from jobos.models import Profile
from jobos.routers.deps import get_llm_client, http_error_for, not_found
from jobos.schemas.profile import (
    ProfileCreate,
    ProfileResponse,
    ProfileSection,
    ProfileUpdate,
    ResumeImportRequest,
    SkillRequest,
)
from jobos.services.llm_client import LLMError, OpenRouterClient
from jobos.services.profile_editor import (
    EntryNotFoundError,
    add_skill,
    profile_values,
    remove_entry,
    remove_skill,
    update_entry,
    upsert_entry,
)
from jobos.services.resume import import_profile_from_resume

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


async def _get_profile_or_404(db: AsyncSession, profile_id: int) -> Profile:
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise not_found("Profile", profile_id)
    return profile


async def _commit_and_respond(db: AsyncSession, profile: Profile) -> ProfileResponse:
    await db.commit()
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)


@router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a profile"
)
async def create_profile(
    profile_data: ProfileCreate,
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Create a candidate profile.

    Raises:
        HTTPException 422: Validation error
        HTTPException 500: Database error
    """
    try:
        profile = Profile(**profile_values(profile_data))
        db.add(profile)
        response = await _commit_and_respond(db, profile)

        logger.info(f"Created profile {profile.id}: {profile.name}")
        return response

    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create profile: {str(e)}"
        )


@router.get(
    "",
    response_model=list[ProfileResponse],
    summary="List all profiles"
)
async def list_profiles(
    db: AsyncSession = Depends(get_db)
) -> list[ProfileResponse]:
    """List profiles, oldest first."""
    result = await db.execute(select(Profile).order_by(Profile.id))
    return [ProfileResponse.model_validate(p) for p in result.scalars().all()]


@router.post(
    "/import",
    response_model=ProfileCreate,
    summary="Parse resume text into an unsaved profile"
)
async def import_profile(
    request: ResumeImportRequest,
    llm: OpenRouterClient = Depends(get_llm_client)
) -> ProfileCreate:
    """Extract a profile from pasted resume text.

    The result is not saved; the client reviews it and posts it to
    ``POST /api/v1/profiles``.

    Raises:
        HTTPException 400: API key not configured
        HTTPException 502: Model request failed or returned unusable output
    """
    try:
        return await import_profile_from_resume(llm, request.raw_text)
    except LLMError as e:
        logger.error(f"Resume import failed: {e}")
        raise http_error_for(e)
    except ValueError as e:
        logger.error(f"Resume import returned unusable output: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to parse resume: {str(e)}"
        )


@router.get(
    "/{profile_id}",
    response_model=ProfileResponse,
    summary="Get profile by ID"
)
async def get_profile(
    profile_id: int,
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Get a single profile.

    Raises:
        HTTPException 404: Profile not found
    """
    profile = await _get_profile_or_404(db, profile_id)
    return ProfileResponse.model_validate(profile)


@router.patch(
    "/{profile_id}",
    response_model=ProfileResponse,
    summary="Update a profile"
)
async def update_profile(
    profile_id: int,
    profile_data: ProfileUpdate,
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Update profile fields. Only provided fields are changed.

    Raises:
        HTTPException 404: Profile not found
    """
    profile = await _get_profile_or_404(db, profile_id)

    update_data = profile_data.model_dump(mode="json", exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field != "photo":
            continue
        setattr(profile, field, value)

    logger.info(f"Updated profile {profile_id}: {sorted(update_data)}")
    return await _commit_and_respond(db, profile)


@router.delete(
    "/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete profile"
)
async def delete_profile(
    profile_id: int,
    db: AsyncSession = Depends(get_db)
) -> None:
    """Delete a profile. Jobs referencing it keep their profile_id.

    Raises:
        HTTPException 404: Profile not found
    """
    profile = await _get_profile_or_404(db, profile_id)
    await db.delete(profile)
    await db.commit()
    logger.info(f"Deleted profile {profile_id}")


@router.post(
    "/{profile_id}/skills",
    response_model=ProfileResponse,
    summary="Add a skill"
)
async def add_profile_skill(
    profile_id: int,
    request: SkillRequest,
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Add a skill; adding one that already exists is a no-op."""
    profile = await _get_profile_or_404(db, profile_id)
    add_skill(profile, request.skill)
    return await _commit_and_respond(db, profile)


@router.delete(
    "/{profile_id}/skills/{skill:path}",
    response_model=ProfileResponse,
    summary="Remove a skill"
)
async def remove_profile_skill(
    profile_id: int,
    skill: str,
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Remove a skill by exact name.

    Raises:
        HTTPException 404: Profile or skill not found
    """
    profile = await _get_profile_or_404(db, profile_id)
    if not remove_skill(profile, skill):
        raise not_found("Skill", skill)
    return await _commit_and_respond(db, profile)


@router.post(
    "/{profile_id}/{section}",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a section entry"
)
async def add_section_entry(
    profile_id: int,
    section: ProfileSection,
    entry: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Add an experience, project, education or certification entry.

    A fresh UUID is assigned; any id in the body is ignored.

    Raises:
        HTTPException 404: Profile not found
        HTTPException 422: Entry does not match the section schema
    """
    profile = await _get_profile_or_404(db, profile_id)
    entry = {k: v for k, v in entry.items() if k != "id"}

    try:
        stored = upsert_entry(profile, section, entry)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False)
        )

    logger.info(f"Added {section} entry {stored['id']} to profile {profile_id}")
    return await _commit_and_respond(db, profile)


@router.patch(
    "/{profile_id}/{section}/{entry_id}",
    response_model=ProfileResponse,
    summary="Update a section entry"
)
async def update_section_entry(
    profile_id: int,
    section: ProfileSection,
    entry_id: UUID,
    changes: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Update fields of an existing entry; its id never changes.

    Raises:
        HTTPException 404: Profile or entry not found
        HTTPException 422: Result does not match the section schema
    """
    profile = await _get_profile_or_404(db, profile_id)

    try:
        update_entry(profile, section, entry_id, changes)
    except EntryNotFoundError:
        raise not_found(f"{section} entry", entry_id)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False)
        )

    return await _commit_and_respond(db, profile)


@router.delete(
    "/{profile_id}/{section}/{entry_id}",
    response_model=ProfileResponse,
    summary="Remove a section entry"
)
async def delete_section_entry(
    profile_id: int,
    section: ProfileSection,
    entry_id: UUID,
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Remove an entry by id.

    Raises:
        HTTPException 404: Profile or entry not found
    """
    profile = await _get_profile_or_404(db, profile_id)
    if not remove_entry(profile, section, entry_id):
        raise not_found(f"{section} entry", entry_id)
    return await _commit_and_respond(db, profile)
