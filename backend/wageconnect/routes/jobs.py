"""Job web routes: posting, browsing, applying, completing, deleting."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.dependencies.auth import Identity, require_identity, require_poster, require_worker
from wageconnect.models.base import get_db
from wageconnect.schemas.auth import field_errors
from wageconnect.schemas.job import JobForm
from wageconnect.services import job_service
from wageconnect.services.notifier import Notifier, get_notifier
from wageconnect.services.wishlist_service import wishlisted_job_ids
from wageconnect.templating import page_context, templates

router = APIRouter(prefix="/jobs", tags=["jobs"])

FORM_FIELDS = ("title", "description", "wage", "location", "deadline")


async def _read_job_form(request: Request) -> tuple[JobForm | None, dict, list[dict]]:
    """Parse the posted form. Returns (form, raw values, field errors)."""
    form = await request.form()
    values = {field: str(form.get(field, "")) for field in FORM_FIELDS}
    try:
        return JobForm(**values), values, []
    except ValidationError as exc:
        return None, values, field_errors(exc)


def _job_values(job) -> dict:
    return {
        "title": job.title,
        "description": job.description,
        "wage": job.wage,
        "location": job.location,
        "deadline": job.deadline.date().isoformat() if job.deadline else "",
    }


@router.get("", response_class=HTMLResponse)
async def create_job_page(
    request: Request,
    identity: Identity = Depends(require_poster),
    db: AsyncSession = Depends(get_db),
):
    """Job creation form."""
    ctx = await page_context(request, db, identity, values={}, errors=[])
    return templates.TemplateResponse(request, "jobs/create.html", ctx)


@router.post("", response_class=HTMLResponse)
async def create_job_submit(
    request: Request,
    identity: Identity = Depends(require_poster),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    form, values, errors = await _read_job_form(request)
    if errors:
        ctx = await page_context(request, db, identity, values=values, errors=errors)
        return templates.TemplateResponse(request, "jobs/create.html", ctx, status_code=400)

    await job_service.create_job(db, notifier, identity, form)
    return RedirectResponse("/jobs/active?created=1", status_code=303)


@router.get("/active", response_class=HTMLResponse)
async def active_jobs(
    request: Request,
    q: str = "",
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Poster: own open/active jobs. Worker: jobs in progress."""
    jobs = await job_service.list_active_jobs(db, identity, q)
    template = "user/active_jobs.html" if identity.is_poster else "worker/active_jobs.html"
    ctx = await page_context(request, db, identity, jobs=jobs, q=q.strip())
    return templates.TemplateResponse(request, template, ctx)


@router.get("/past", response_class=HTMLResponse)
async def past_jobs(
    request: Request,
    q: str = "",
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    jobs = await job_service.list_past_jobs(db, identity, q)
    template = "user/past_jobs.html" if identity.is_poster else "worker/past_jobs.html"
    ctx = await page_context(request, db, identity, jobs=jobs, q=q.strip())
    return templates.TemplateResponse(request, template, ctx)


@router.get("/available", response_class=HTMLResponse)
async def available_jobs(
    request: Request,
    q: str = "",
    identity: Identity = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
):
    """Open jobs for workers, with their wishlist state."""
    jobs = await job_service.list_available_jobs(db, q)
    wishlist_ids = await wishlisted_job_ids(db, identity.id)
    ctx = await page_context(request, db, identity, jobs=jobs, wishlist_ids=wishlist_ids, q=q.strip())
    return templates.TemplateResponse(request, "worker/available_jobs.html", ctx)


@router.get("/{job_id}/edit", response_class=HTMLResponse)
async def edit_job_page(
    request: Request,
    job_id: UUID,
    identity: Identity = Depends(require_poster),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job_for_poster(db, job_id, identity)
    ctx = await page_context(request, db, identity, job=job, values=_job_values(job), errors=[])
    return templates.TemplateResponse(request, "jobs/edit.html", ctx)


@router.post("/{job_id}/edit", response_class=HTMLResponse)
async def edit_job_submit(
    request: Request,
    job_id: UUID,
    identity: Identity = Depends(require_poster),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job_for_poster(db, job_id, identity)
    form, values, errors = await _read_job_form(request)
    if errors:
        ctx = await page_context(request, db, identity, job=job, values=values, errors=errors)
        return templates.TemplateResponse(request, "jobs/edit.html", ctx, status_code=400)

    await job_service.update_job(db, job_id, identity, form)
    return RedirectResponse("/jobs/active?updated=1", status_code=303)


@router.post("/{job_id}/apply")
async def apply_job(
    job_id: UUID,
    identity: Identity = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    await job_service.apply_to_job(db, notifier, job_id, identity)
    return RedirectResponse("/jobs/active?applied=1", status_code=303)


@router.post("/{job_id}/complete")
async def complete_job(
    job_id: UUID,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    await job_service.complete_job(db, notifier, job_id, identity)
    return RedirectResponse("/jobs/past?completed=1", status_code=303)


@router.post("/{job_id}/delete")
async def delete_job(
    job_id: UUID,
    identity: Identity = Depends(require_poster),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    await job_service.delete_job(db, notifier, job_id, identity)
    return RedirectResponse("/jobs/active?deleted=1", status_code=303)


@router.get("/{job_id}", response_class=HTMLResponse)
async def job_detail(
    request: Request,
    job_id: UUID,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Single job detail page, for the poster or the applied worker."""
    job = await job_service.get_job_for_viewer(db, job_id, identity)
    ctx = await page_context(request, db, identity, job=job)
    return templates.TemplateResponse(request, "jobs/detail.html", ctx)
