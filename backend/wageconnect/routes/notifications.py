"""Notification routes: list, mark all read, unread badge count."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.dependencies.auth import Identity, require_identity
from wageconnect.models.base import get_db
from wageconnect.services.notification_service import list_notifications, mark_all_read, unread_count
from wageconnect.templating import page_context, templates

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_class=HTMLResponse)
async def notifications_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    items = await list_notifications(db, identity.id)
    ctx = await page_context(request, db, identity, items=items)
    return templates.TemplateResponse(request, "notifications.html", ctx)


@router.post("/read")
async def mark_read(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    await mark_all_read(db, identity.id)
    return RedirectResponse("/notifications?read=1", status_code=303)


@router.get("/unread-count")
async def unread(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Badge count, polled by the client after real-time events."""
    return {"unread": await unread_count(db, identity.id)}
