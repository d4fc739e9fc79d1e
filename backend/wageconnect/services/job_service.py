"""Job lifecycle service: create, edit, apply, complete, delete and list jobs.

Status flows open -> active -> completed; deletion removes the record from any
state. Role and ownership checks live here so every caller gets them. Each
mutation commits before its side effects run, and side effects never raise.
"""

import html
import logging
from datetime import datetime, time, timezone
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wageconnect.dependencies.auth import Identity
from wageconnect.exceptions import ForbiddenAction, JobNotFound, JobStateConflict
from wageconnect.models.job import Job, STATUS_OPEN, STATUS_ACTIVE, STATUS_COMPLETED
from wageconnect.models.user import User, ROLE_USER, ROLE_WORKER
from wageconnect.models.wishlist import WishlistEntry
from wageconnect.realtime import (
    EVENT_JOB_NEW,
    EVENT_JOB_APPLIED,
    EVENT_JOB_COMPLETED,
    EVENT_JOB_DELETED,
    role_room,
    user_room,
)
from wageconnect.schemas.job import JobForm
from wageconnect.services.notifier import Notifier, OutgoingMail

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def text_filter(q: str | None):
    """Case-insensitive substring match across title, description and location."""
    q = (q or "").strip()
    if not q:
        return None
    pattern = f"%{escape_like(q)}%"
    return or_(
        Job.title.ilike(pattern, escape=LIKE_ESCAPE),
        Job.description.ilike(pattern, escape=LIKE_ESCAPE),
        Job.location.ilike(pattern, escape=LIKE_ESCAPE),
    )


def _deadline(value) -> datetime | None:
    if value is None:
        return None
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _with_parties(query):
    return query.options(selectinload(Job.poster), selectinload(Job.worker))


async def get_job(db: AsyncSession, job_id: UUID, with_parties: bool = False) -> Job:
    """Load a job by id or raise JobNotFound."""
    query = select(Job).where(Job.id == job_id).execution_options(populate_existing=True)
    if with_parties:
        query = _with_parties(query)
    job = (await db.execute(query)).scalar_one_or_none()
    if job is None:
        raise JobNotFound(job_id)
    return job


def _ensure_poster(job: Job, identity: Identity):
    if identity.role != ROLE_USER or job.posted_by_id != identity.id:
        raise ForbiddenAction()


def _applied_by_unchanged(worker_id: UUID | None):
    """Guard a write on the applied worker seen when the job was read."""
    if worker_id is None:
        return Job.applied_by_id.is_(None)
    return Job.applied_by_id == worker_id


async def _raise_lost_race(db: AsyncSession, job_id: UUID, completed_blocks: bool = True):
    """A guarded write matched no row: report what the job looks like now."""
    status = (await db.execute(select(Job.status).where(Job.id == job_id))).scalar_one_or_none()
    if status is None:
        raise JobNotFound(job_id)
    if completed_blocks and status == STATUS_COMPLETED:
        raise JobStateConflict("Job already completed")
    raise JobStateConflict("Job changed while you were updating it, please try again")


async def get_job_for_poster(db: AsyncSession, job_id: UUID, identity: Identity) -> Job:
    job = await get_job(db, job_id)
    _ensure_poster(job, identity)
    return job


async def get_job_for_viewer(db: AsyncSession, job_id: UUID, identity: Identity) -> Job:
    """Full detail is visible to the poster or the applied worker only."""
    job = await get_job(db, job_id, with_parties=True)
    is_poster = identity.role == ROLE_USER and job.posted_by_id == identity.id
    is_worker = identity.role == ROLE_WORKER and job.applied_by_id == identity.id
    if not (is_poster or is_worker):
        raise ForbiddenAction()
    return job


# --- Mutations ---

async def create_job(db: AsyncSession, notifier: Notifier, poster: Identity, form: JobForm) -> Job:
    """Post a new open job and tell every worker about it."""
    if poster.role != ROLE_USER:
        raise ForbiddenAction()

    job = Job(
        title=form.title,
        description=form.description,
        wage=form.wage,
        location=form.location,
        deadline=_deadline(form.deadline),
        status=STATUS_OPEN,
        posted_by_id=poster.id,
    )
    db.add(job)
    await db.commit()

    job_id, title, description = job.id, job.title, job.description
    logger.info("Job %s created by %s", job_id, poster.id)

    workers = (await db.execute(select(User.id, User.email).where(User.role == ROLE_WORKER))).all()
    if workers:
        await notifier.notify([w.id for w in workers], "New Job", f"New job posted: {title}")

    await notifier.broadcast(EVENT_JOB_NEW, {"jobId": str(job_id), "title": title}, [role_room(ROLE_WORKER)])

    if workers:
        subject = f"New Job Posted: {title}"
        body = (
            "<p>A new job has been posted.</p>"
            f"<p><strong>{html.escape(title)}</strong> - {html.escape(description)}</p>"
        )
        await notifier.email(OutgoingMail(w.email, subject, body) for w in workers if w.email)

    return job


async def update_job(db: AsyncSession, job_id: UUID, poster: Identity, form: JobForm) -> Job:
    """Overwrite the editable fields in place; status and worker are untouched."""
    job = await get_job_for_poster(db, job_id, poster)
    job.title = form.title
    job.description = form.description
    job.wage = form.wage
    job.location = form.location
    job.deadline = _deadline(form.deadline)
    await db.commit()
    logger.info("Job %s updated by %s", job_id, poster.id)
    return job


async def apply_to_job(db: AsyncSession, notifier: Notifier, job_id: UUID, worker: Identity) -> Job:
    """Claim an open job for the worker.

    The status guard and the write are one conditional UPDATE, so of two
    concurrent applicants exactly one sees a row updated.
    """
    if worker.role != ROLE_WORKER:
        raise ForbiddenAction()

    result = await db.execute(
        update(Job)
        .where(Job.id == job_id, Job.status == STATUS_OPEN)
        .values(status=STATUS_ACTIVE, applied_by_id=worker.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        exists = (await db.execute(select(Job.id).where(Job.id == job_id))).scalar_one_or_none()
        if exists is None:
            raise JobNotFound(job_id)
        raise JobStateConflict("Job not available")
    await db.commit()

    job = await get_job(db, job_id, with_parties=True)
    title = job.title
    poster_id = job.posted_by_id
    poster_email = job.poster.email if job.poster else None
    logger.info("Worker %s applied to job %s", worker.id, job_id)

    await notifier.notify([poster_id], "Job Application", f"Applied by {worker.name} for {title}")
    await notifier.broadcast(
        EVENT_JOB_APPLIED,
        {"jobId": str(job_id), "workerId": str(worker.id)},
        [user_room(poster_id)],
    )
    if poster_email:
        await notifier.email([
            OutgoingMail(
                poster_email,
                f"Your job received an application: {title}",
                f"<p>{html.escape(worker.name)} applied for your job <strong>{html.escape(title)}</strong>.</p>",
            )
        ])
    return job


async def complete_job(db: AsyncSession, notifier: Notifier, job_id: UUID, identity: Identity) -> Job:
    """Mark a job completed. Allowed for the poster or the applied worker.

    The write is guarded on the status and worker that were read, so the
    parties notified are exactly the parties on the completed row.
    """
    job = await get_job(db, job_id, with_parties=True)

    if identity.role == ROLE_USER:
        allowed = job.posted_by_id == identity.id
    elif identity.role == ROLE_WORKER:
        allowed = job.applied_by_id is not None and job.applied_by_id == identity.id
    else:
        allowed = False
    if not allowed:
        raise ForbiddenAction()
    if job.status == STATUS_COMPLETED:
        raise JobStateConflict("Job already completed")

    title = job.title
    parties = [p for p in (job.poster, job.worker) if p is not None]

    result = await db.execute(
        update(Job)
        .where(
            Job.id == job_id,
            Job.status == job.status,
            _applied_by_unchanged(job.applied_by_id),
        )
        .values(status=STATUS_COMPLETED, completed_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        await _raise_lost_race(db, job_id)
    await db.commit()

    recipient_ids = [p.id for p in parties]
    emails = [p.email for p in parties if p.email]
    logger.info("Job %s completed by %s", job_id, identity.id)

    await notifier.notify(recipient_ids, "Job Completed", f"Job completed: {title}")
    await notifier.broadcast(
        EVENT_JOB_COMPLETED,
        {"jobId": str(job_id)},
        [user_room(pid) for pid in recipient_ids],
    )
    subject = f"Job Completed: {title}"
    body = f"<p>The job <strong>{html.escape(title)}</strong> has been marked completed.</p>"
    await notifier.email(OutgoingMail(email, subject, body) for email in emails)

    return await get_job(db, job_id, with_parties=True)


async def delete_job(db: AsyncSession, notifier: Notifier, job_id: UUID, poster: Identity):
    """Remove a job in any state. An applied worker is told it was cancelled."""
    job = await get_job_for_poster(db, job_id, poster)
    title = job.title
    worker_id = job.applied_by_id

    await db.execute(delete(WishlistEntry).where(WishlistEntry.job_id == job_id))
    result = await db.execute(
        delete(Job)
        .where(Job.id == job_id, _applied_by_unchanged(worker_id))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        await _raise_lost_race(db, job_id, completed_blocks=False)
    await db.commit()
    db.expunge(job)
    logger.info("Job %s deleted by %s", job_id, poster.id)

    if worker_id is not None:
        await notifier.notify([worker_id], "Job Cancelled", f"Job removed by poster: {title}")

    rooms = [role_room(ROLE_WORKER)]
    if worker_id is not None:
        rooms.append(user_room(worker_id))
    await notifier.broadcast(EVENT_JOB_DELETED, {"jobId": str(job_id)}, rooms)


# --- Queries ---

async def _list(db: AsyncSession, *conditions, q: str | None = None) -> list[Job]:
    query = _with_parties(select(Job)).where(*conditions)
    matcher = text_filter(q)
    if matcher is not None:
        query = query.where(matcher)
    query = query.order_by(Job.created_at.desc())
    return list((await db.execute(query)).scalars().all())


async def list_active_jobs(db: AsyncSession, identity: Identity, q: str | None = None) -> list[Job]:
    """Poster: own open and active jobs. Worker: active jobs they applied to."""
    if identity.role == ROLE_USER:
        return await _list(
            db, Job.posted_by_id == identity.id, Job.status.in_([STATUS_OPEN, STATUS_ACTIVE]), q=q
        )
    if identity.role == ROLE_WORKER:
        return await _list(db, Job.applied_by_id == identity.id, Job.status == STATUS_ACTIVE, q=q)
    raise ForbiddenAction()


async def list_past_jobs(db: AsyncSession, identity: Identity, q: str | None = None) -> list[Job]:
    """Completed jobs, filtered by role the same way as the active list."""
    if identity.role == ROLE_USER:
        return await _list(db, Job.posted_by_id == identity.id, Job.status == STATUS_COMPLETED, q=q)
    if identity.role == ROLE_WORKER:
        return await _list(db, Job.applied_by_id == identity.id, Job.status == STATUS_COMPLETED, q=q)
    raise ForbiddenAction()


async def list_available_jobs(db: AsyncSession, q: str | None = None) -> list[Job]:
    """All open jobs, for workers browsing."""
    return await _list(db, Job.status == STATUS_OPEN, q=q)
