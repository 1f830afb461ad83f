"""Settings API router: API key and theme, export and delete-all."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.database import get_db
from jobos.schemas.settings import (
    ClearDataResponse,
    ExportDocument,
    SettingsResponse,
    SettingsUpdate,
)
from jobos.services.settings_store import (
    clear_all_data,
    export_data,
    get_settings,
    update_settings,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


@router.get(
    "",
    response_model=SettingsResponse,
    summary="Get settings"
)
async def read_settings(
    db: AsyncSession = Depends(get_db)
) -> SettingsResponse:
    """Current settings. Created with defaults on first access."""
    row = await get_settings(db)
    await db.commit()
    return SettingsResponse.from_orm_model(row)


@router.patch(
    "",
    response_model=SettingsResponse,
    summary="Update settings"
)
async def patch_settings(
    changes: SettingsUpdate,
    db: AsyncSession = Depends(get_db)
) -> SettingsResponse:
    """Update the API key and/or theme. An empty key clears the stored key."""
    row = await update_settings(db, changes)
    await db.commit()
    await db.refresh(row)

    logger.info(f"Updated settings: {sorted(changes.model_dump(exclude_unset=True))}")
    return SettingsResponse.from_orm_model(row)


@router.get(
    "/export",
    response_model=ExportDocument,
    summary="Export all data"
)
async def export_all(
    db: AsyncSession = Depends(get_db)
) -> ExportDocument:
    """Backup of jobs, profiles and settings as one JSON document."""
    document = await export_data(db)
    logger.info(
        f"Exported {len(document['jobs'])} jobs and {len(document['profiles'])} profiles"
    )
    return ExportDocument(**document)


@router.delete(
    "/data",
    response_model=ClearDataResponse,
    summary="Delete all data"
)
async def delete_all_data(
    db: AsyncSession = Depends(get_db)
) -> ClearDataResponse:
    """Delete every job, profile and draft and reset settings to defaults.

    Raises:
        HTTPException 500: Nothing was deleted
    """
    try:
        row = await clear_all_data(db)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to clear data: {str(e)}"
        )

    return ClearDataResponse(
        message="All jobs, profiles and settings have been deleted.",
        settings=SettingsResponse.from_orm_model(row),
    )
