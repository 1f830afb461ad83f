"""Jobs API router.

This module provides REST endpoints for the application tracker: CRUD,
status changes, search and the plain-text document exports.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.database import get_db
from jobos.models import Job, Profile
from jobos.routers.deps import not_found
from jobos.schemas.job import (
    DocumentTextResponse,
    JobCreate,
    JobListResponse,
    JobResponse,
    JobStatus,
    JobStatusUpdate,
    JobUpdate,
)
from jobos.services.job_lifecycle import mark_ghosted_jobs
from jobos.services.profile_editor import to_profile_schema
from jobos.services.resume import build_resume_plain_text, cover_letter_filename, resume_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/jobs", tags=["jobs"])


def job_values(job_data: JobCreate) -> dict:
    """Column values for a new Job row; an unset date_applied means now."""
    values = job_data.model_dump()
    if values.get("date_applied") is None:
        values.pop("date_applied", None)
    return values


async def _get_job_or_404(db: AsyncSession, job_id: int) -> Job:
    job = await db.get(Job, job_id)
    if not job:
        raise not_found("Job", job_id)
    return job


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new job"
)
async def create_job(
    job_data: JobCreate,
    db: AsyncSession = Depends(get_db)
) -> JobResponse:
    """Create a tracked job application.

    Raises:
        HTTPException 422: Validation error
        HTTPException 500: Database error
    """
    try:
        job = Job(**job_values(job_data))

        db.add(job)
        await db.commit()
        await db.refresh(job)

        logger.info(f"Created job {job.id}: {job.role} at {job.company}")
        return JobResponse.model_validate(job)

    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create job: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create job: {str(e)}"
        )


@router.get(
    "",
    response_model=JobListResponse,
    summary="List all jobs"
)
async def list_jobs(
    q: str | None = Query(None, description="Case-insensitive match on company or role"),
    job_status: JobStatus | None = Query(None, alias="status", description="Only this status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, description="Items per page"),
    db: AsyncSession = Depends(get_db)
) -> JobListResponse:
    """List jobs with search, status filter and pagination.

    Overdue Applied jobs are moved to Ghosted before the list is read.

    Raises:
        HTTPException 500: Database error
    """
    try:
        ghosted = await mark_ghosted_jobs(db)
        if ghosted:
            await db.commit()

        # Build query
        query = select(Job)
        if q:
            pattern = f"%{q.strip()}%"
            query = query.where(or_(Job.company.ilike(pattern), Job.role.ilike(pattern)))
        if job_status:
            query = query.where(Job.status == job_status)

        # Get total count
        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        # Apply pagination
        offset = (page - 1) * page_size
        query = query.order_by(Job.created_at.desc(), Job.id.desc()).offset(offset).limit(page_size)

        result = await db.execute(query)
        jobs = result.scalars().all()

        return JobListResponse(
            total=total,
            jobs=[JobResponse.model_validate(job) for job in jobs],
            page=page,
            page_size=page_size,
            ghosted=ghosted,
        )

    except Exception as e:
        logger.error(f"Failed to list jobs: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list jobs: {str(e)}"
        )


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get job by ID"
)
async def get_job(
    job_id: int,
    db: AsyncSession = Depends(get_db)
) -> JobResponse:
    """Get a single job.

    Raises:
        HTTPException 404: Job not found
    """
    job = await _get_job_or_404(db, job_id)
    return JobResponse.model_validate(job)


@router.patch(
    "/{job_id}",
    response_model=JobResponse,
    summary="Update a job"
)
async def update_job(
    job_id: int,
    job_data: JobUpdate,
    db: AsyncSession = Depends(get_db)
) -> JobResponse:
    """Update job fields. Only provided fields are changed.

    Raises:
        HTTPException 404: Job not found
        HTTPException 500: Database error
    """
    job = await _get_job_or_404(db, job_id)

    try:
        update_data = job_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field != "profile_id":
                continue
            setattr(job, field, value)

        await db.commit()
        await db.refresh(job)

        logger.info(f"Updated job {job_id}: {sorted(update_data)}")
        return JobResponse.model_validate(job)

    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update job {job_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update job: {str(e)}"
        )


@router.patch(
    "/{job_id}/status",
    response_model=JobResponse,
    summary="Change job status"
)
async def update_job_status(
    job_id: int,
    status_data: JobStatusUpdate,
    db: AsyncSession = Depends(get_db)
) -> JobResponse:
    """Change only the status of a job (tracker table dropdown).

    Raises:
        HTTPException 404: Job not found
    """
    job = await _get_job_or_404(db, job_id)
    previous = job.status
    job.status = status_data.status

    await db.commit()
    await db.refresh(job)

    logger.info(f"Job {job_id} status {previous} -> {job.status}")
    return JobResponse.model_validate(job)


@router.delete(
    "/{job_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete job"
)
async def delete_job(
    job_id: int,
    db: AsyncSession = Depends(get_db)
) -> None:
    """Delete a job.

    Raises:
        HTTPException 404: Job not found
        HTTPException 500: Database error
    """
    job = await _get_job_or_404(db, job_id)

    try:
        await db.delete(job)
        await db.commit()
        logger.info(f"Deleted job {job_id}")

    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete job {job_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete job: {str(e)}"
        )


@router.get(
    "/{job_id}/resume/text",
    response_model=DocumentTextResponse,
    summary="Resume as plain text"
)
async def get_resume_text(
    job_id: int,
    db: AsyncSession = Depends(get_db)
) -> DocumentTextResponse:
    """Resume snapshot with the linked profile's contact header.

    Raises:
        HTTPException 404: Job not found
    """
    job = await _get_job_or_404(db, job_id)

    profile = None
    if job.profile_id is not None:
        row = await db.get(Profile, job.profile_id)
        profile = to_profile_schema(row) if row else None

    return DocumentTextResponse(
        text=build_resume_plain_text(job.resume_snapshot, profile),
        filename=resume_filename(profile, job.company, job.role),
    )


@router.get(
    "/{job_id}/cover-letter/text",
    response_model=DocumentTextResponse,
    summary="Cover letter as plain text"
)
async def get_cover_letter_text(
    job_id: int,
    db: AsyncSession = Depends(get_db)
) -> DocumentTextResponse:
    """Cover letter snapshot as stored.

    Raises:
        HTTPException 404: Job not found
    """
    job = await _get_job_or_404(db, job_id)
    return DocumentTextResponse(
        text=job.cover_letter_snapshot,
        filename=cover_letter_filename(job.company),
    )
