"""Wishlist service: a worker's saved open jobs."""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wageconnect.models.job import Job, STATUS_OPEN
from wageconnect.models.wishlist import WishlistEntry

logger = logging.getLogger(__name__)


async def toggle_wishlist(db: AsyncSession, user_id: UUID, job_id: UUID) -> bool:
    """Remove the entry if present, else add it when the job is open.

    Returns whether the job is wishlisted afterwards. Toggling a job that is
    not open (or does not exist) is a silent no-op.
    """
    existing = (await db.execute(
        select(WishlistEntry.id).where(WishlistEntry.user_id == user_id, WishlistEntry.job_id == job_id)
    )).scalar_one_or_none()

    if existing is not None:
        await db.execute(delete(WishlistEntry).where(WishlistEntry.id == existing))
        await db.commit()
        return False

    status = (await db.execute(select(Job.status).where(Job.id == job_id))).scalar_one_or_none()
    if status != STATUS_OPEN:
        return False

    db.add(WishlistEntry(user_id=user_id, job_id=job_id))
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent toggle inserted the same pair first
        await db.rollback()
        logger.debug("Wishlist entry for %s/%s already exists", user_id, job_id)
    return True


async def list_wishlist(db: AsyncSession, user_id: UUID) -> list[Job]:
    """Jobs the worker saved, newest entry first."""
    result = await db.execute(
        select(WishlistEntry)
        .join(Job, WishlistEntry.job_id == Job.id)
        .where(WishlistEntry.user_id == user_id)
        .options(selectinload(WishlistEntry.job).selectinload(Job.poster))
        .order_by(WishlistEntry.created_at.desc())
    )
    return [entry.job for entry in result.scalars().all()]


async def wishlisted_job_ids(db: AsyncSession, user_id: UUID) -> set[UUID]:
    result = await db.execute(select(WishlistEntry.job_id).where(WishlistEntry.user_id == user_id))
    return {row[0] for row in result}
