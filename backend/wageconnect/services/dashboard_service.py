"""Read-side aggregation for dashboards and wallets.

Nothing here mutates or caches; every figure is recomputed per request from
the jobs and notifications tables.
"""

import calendar
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wageconnect.models.job import Job, STATUS_OPEN, STATUS_ACTIVE, STATUS_COMPLETED
from wageconnect.services.notification_service import list_notifications

MONTHS_SHOWN = 12
RECENT_LIMIT = 10


def _job_timestamp(job) -> datetime | None:
    """When a job last changed state: completion, else last update, else creation."""
    return getattr(job, "completed_at", None) or job.updated_at or job.created_at


def _wage_total(jobs) -> float:
    return sum(float(job.wage or 0) for job in jobs)


def earnings_by_month(jobs, now: datetime | None = None) -> list[dict]:
    """Bucket completed-job wages into the last 12 calendar months.

    Buckets run oldest first and end with the month of ``now``. Jobs whose
    timestamp falls outside the window are ignored.
    """
    now = now or datetime.now(timezone.utc)
    current = now.year * 12 + now.month - 1
    buckets = []
    for offset in range(MONTHS_SHOWN - 1, -1, -1):
        year, month_index = divmod(current - offset, 12)
        buckets.append({
            "key": f"{year}-{month_index + 1:02d}",
            "label": calendar.month_abbr[month_index + 1],
            "total": 0.0,
        })
    positions = {bucket["key"]: i for i, bucket in enumerate(buckets)}

    for job in jobs:
        stamp = _job_timestamp(job)
        if stamp is None:
            continue
        index = positions.get(f"{stamp.year}-{stamp.month:02d}")
        if index is not None:
            buckets[index]["total"] += float(job.wage or 0)
    return buckets


def _recent_entries(jobs) -> list[dict]:
    ordered = sorted(jobs, key=lambda j: j.updated_at or j.created_at, reverse=True)
    return [
        {
            "id": str(job.id),
            "title": job.title,
            "amount": float(job.wage or 0),
            "status": job.status,
            "date": job.updated_at or job.created_at,
        }
        for job in ordered[:RECENT_LIMIT]
    ]


async def _jobs(db: AsyncSession, *conditions, limit: int | None = None, parties: bool = False) -> list[Job]:
    query = select(Job).where(*conditions).order_by(Job.updated_at.desc())
    if parties:
        query = query.options(selectinload(Job.poster), selectinload(Job.worker))
    if limit:
        query = query.limit(limit)
    return list((await db.execute(query)).scalars().all())


async def worker_dashboard(db: AsyncSession, worker_id: UUID, now: datetime | None = None) -> dict:
    applied_count = (await db.execute(
        select(func.count(Job.id)).where(Job.applied_by_id == worker_id)
    )).scalar() or 0
    completed = await _jobs(db, Job.applied_by_id == worker_id, Job.status == STATUS_COMPLETED)
    active = await _jobs(db, Job.applied_by_id == worker_id, Job.status == STATUS_ACTIVE)
    recommended = await _jobs(db, Job.status == STATUS_OPEN, limit=6)
    messages = await list_notifications(db, worker_id, limit=5)

    return {
        "stats": {
            "total_applied": applied_count,
            "jobs_completed": len(completed),
            "current_balance": _wage_total(completed),
            "pending_payments": _wage_total(active),
        },
        "earnings_by_month": earnings_by_month(completed, now),
        "recommended_jobs": recommended,
        "messages": messages,
    }


async def user_dashboard(db: AsyncSession, poster_id: UUID) -> dict:
    posted = await _jobs(db, Job.posted_by_id == poster_id, parties=True)
    active = [job for job in posted if job.status == STATUS_ACTIVE]
    completed = [job for job in posted if job.status == STATUS_COMPLETED]
    notifications = await list_notifications(db, poster_id, limit=5)

    recent_applicants = [
        {
            "name": job.worker.name if job.worker else "Applicant",
            "email": job.worker.email if job.worker else "",
            "job_title": job.title,
        }
        for job in posted
        if job.applied_by_id is not None
    ][:8]
    active_posts = [job for job in posted if job.status in (STATUS_OPEN, STATUS_ACTIVE)][:8]

    return {
        "stats": {
            "total_jobs_posted": len(posted),
            "jobs_in_progress": len(active),
            "total_paid": _wage_total(completed),
            "pending_payments": _wage_total(active),
        },
        "recent_applicants": recent_applicants,
        "active_job_posts": active_posts,
        "notifications": notifications,
    }


async def poster_wallet(db: AsyncSession, poster_id: UUID) -> dict:
    completed = await _jobs(db, Job.posted_by_id == poster_id, Job.status == STATUS_COMPLETED, limit=20)
    active = await _jobs(db, Job.posted_by_id == poster_id, Job.status == STATUS_ACTIVE, limit=20)
    return {
        "payments_made": len(completed),
        "pending": len(active),
        "total_spending": _wage_total(completed),
        "pending_amount": _wage_total(active),
        "recent": _recent_entries(completed + active),
    }


async def worker_wallet(db: AsyncSession, worker_id: UUID) -> dict:
    received = await _jobs(db, Job.applied_by_id == worker_id, Job.status == STATUS_COMPLETED, limit=20)
    pending = await _jobs(db, Job.applied_by_id == worker_id, Job.status == STATUS_ACTIVE, limit=20)
    return {
        "received": len(received),
        "pending": len(pending),
        "earnings": _wage_total(received),
        "pending_earnings": _wage_total(pending),
        "recent": _recent_entries(received + pending),
    }
