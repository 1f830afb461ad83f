"""Singleton settings access, data export and the delete-all operation."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.config import settings
from jobos.models import AppSettings, Job, JobDraft, Profile
from jobos.models.app_settings import DEFAULT_THEME
from jobos.schemas.settings import SettingsUpdate
from jobos.services.change_feed import record_change

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"

# Cleared by clear_all_data; contacts are kept
CLEARED_TABLES = (Job, Profile, JobDraft, AppSettings)


async def get_settings(db: AsyncSession) -> AppSettings:
    """Return the settings row, creating it with defaults when absent.

    Any rows beyond the first (lowest id) are deleted.
    """
    result = await db.execute(select(AppSettings).order_by(AppSettings.id))
    rows = list(result.scalars().all())

    if not rows:
        row = AppSettings(theme=DEFAULT_THEME)
        db.add(row)
        await db.flush()
        logger.info("Created default settings row")
        return row

    for extra in rows[1:]:
        logger.warning(f"Removing duplicate settings row {extra.id}")
        await db.delete(extra)
    if len(rows) > 1:
        await db.flush()

    return rows[0]


async def update_settings(db: AsyncSession, changes: SettingsUpdate) -> AppSettings:
    """Apply a partial settings update. An empty API key clears it."""
    row = await get_settings(db)
    update_data = changes.model_dump(exclude_unset=True)

    if "openrouter_api_key" in update_data:
        key = (update_data.pop("openrouter_api_key") or "").strip()
        row.openrouter_api_key = key or None
    for field, value in update_data.items():
        if value is not None:
            setattr(row, field, value)

    await db.flush()
    return row


def resolve_api_key(row: AppSettings | None) -> str | None:
    """Stored API key, falling back to the OPENROUTER_API_KEY environment value."""
    if row is not None and row.openrouter_api_key:
        return row.openrouter_api_key
    return settings.openrouter_api_key


async def clear_all_data(db: AsyncSession) -> AppSettings:
    """Delete jobs, profiles, drafts and settings, then reseed default settings.

    Runs as one transaction: either everything is cleared and a single
    default settings row exists, or nothing changes.
    """
    try:
        for model in CLEARED_TABLES:
            await db.execute(delete(model))
            record_change(db.sync_session, model.__tablename__, "delete")

        row = AppSettings(theme=DEFAULT_THEME)
        db.add(row)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to clear data: {e}")
        raise

    await db.refresh(row)
    logger.info("Cleared all jobs, profiles, drafts and settings")
    return row


def _row_to_dict(row: Any) -> dict[str, Any]:
    data = {}
    for column in inspect(row).mapper.column_attrs:
        value = getattr(row, column.key)
        if isinstance(value, datetime):
            value = value.isoformat()
        data[column.key] = value
    return data


async def export_data(db: AsyncSession) -> dict[str, Any]:
    """Full backup document of jobs, profiles and settings.

    Settings are exported as stored, API key included.
    """
    jobs = (await db.execute(select(Job).order_by(Job.id))).scalars().all()
    profiles = (await db.execute(select(Profile).order_by(Profile.id))).scalars().all()
    settings_rows = (await db.execute(select(AppSettings).order_by(AppSettings.id))).scalars().all()

    return {
        "jobs": [_row_to_dict(job) for job in jobs],
        "profiles": [_row_to_dict(profile) for profile in profiles],
        "settings": [_row_to_dict(row) for row in settings_rows],
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "version": EXPORT_VERSION,
    }
