"""Job status rules: the Applied -> Ghosted sweep and keyword merging."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.config import settings
from jobos.models import Job

logger = logging.getLogger(__name__)

GHOSTABLE_STATUS = "Applied"
GHOSTED_STATUS = "Ghosted"


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def should_mark_ghosted(job: Job, now: datetime | None = None) -> bool:
    """True when an Applied job has waited strictly longer than the threshold.

    Examples:
        A job applied exactly 14 days ago is not ghosted yet; one applied
        14 days and one second ago is.
    """
    if job.status != GHOSTABLE_STATUS or job.date_applied is None:
        return False
    now = as_utc(now or datetime.now(timezone.utc))
    return now - as_utc(job.date_applied) > timedelta(days=settings.ghosted_after_days)


async def mark_ghosted_jobs(db: AsyncSession, now: datetime | None = None) -> int:
    """Move every overdue Applied job to Ghosted.

    Changes are flushed but not committed; the caller owns the transaction.

    Returns:
        Number of jobs updated
    """
    now = now or datetime.now(timezone.utc)
    result = await db.execute(select(Job).where(Job.status == GHOSTABLE_STATUS))
    overdue = [job for job in result.scalars().all() if should_mark_ghosted(job, now)]

    for job in overdue:
        job.status = GHOSTED_STATUS
        logger.info(f"Job {job.id} ({job.company}) marked Ghosted")

    if overdue:
        await db.flush()
    return len(overdue)


def merge_keywords(existing: list[str], extracted: list) -> list[str]:
    """Union of two keyword lists, keeping first-seen order.

    Matching is exact string equality. Non-string and blank entries from
    the extracted list are dropped.

    Examples:
        >>> merge_keywords(["Python"], ["python", "Python", "SQL"])
        ['Python', 'python', 'SQL']
    """
    merged = list(existing)
    for keyword in extracted:
        if not isinstance(keyword, str):
            continue
        keyword = keyword.strip()
        if keyword and keyword not in merged:
            merged.append(keyword)
    return merged
