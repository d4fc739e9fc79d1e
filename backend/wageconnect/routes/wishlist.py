"""Wishlist web routes (workers only)."""

from urllib.parse import urlparse
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.dependencies.auth import Identity, require_worker
from wageconnect.models.base import get_db
from wageconnect.services.wishlist_service import list_wishlist, toggle_wishlist
from wageconnect.templating import page_context, templates

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def _back_url(request: Request, default: str = "/jobs/available") -> str:
    """Same-site path from the Referer header, else the default."""
    referer = request.headers.get("referer")
    if not referer:
        return default
    parsed = urlparse(referer)
    if parsed.netloc and parsed.netloc != request.url.netloc:
        return default
    path = parsed.path or default
    if not path.startswith("/") or path[1:2] in ("/", "\\"):
        return default
    return f"{path}?{parsed.query}" if parsed.query else path


@router.get("", response_class=HTMLResponse)
async def wishlist_page(
    request: Request,
    identity: Identity = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
):
    jobs = await list_wishlist(db, identity.id)
    ctx = await page_context(request, db, identity, jobs=jobs)
    return templates.TemplateResponse(request, "worker/wishlist.html", ctx)


@router.post("/{job_id}/toggle")
async def toggle(
    request: Request,
    job_id: UUID,
    identity: Identity = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
):
    await toggle_wishlist(db, identity.id, job_id)
    return RedirectResponse(_back_url(request), status_code=303)
