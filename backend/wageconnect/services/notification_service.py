"""Notification queries: per-recipient lists, unread counts, mark-all-read."""

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.models.notification import Notification


async def list_notifications(db: AsyncSession, recipient_id: UUID, limit: int | None = None) -> list[Notification]:
    query = (
        select(Notification)
        .where(Notification.recipient_id == recipient_id)
        .order_by(Notification.created_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return list((await db.execute(query)).scalars().all())


async def unread_count(db: AsyncSession, recipient_id: UUID) -> int:
    return (await db.execute(
        select(func.count(Notification.id))
        .where(Notification.recipient_id == recipient_id, Notification.is_read == False)  # noqa: E712
    )).scalar() or 0


async def mark_all_read(db: AsyncSession, recipient_id: UUID) -> int:
    """Mark every unread notification for the recipient read. Returns the count."""
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.is_read == False)  # noqa: E712
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount
