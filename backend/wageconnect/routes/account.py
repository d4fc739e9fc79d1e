"""Account routes: profile settings and a test mail form."""

import asyncio
import html
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.dependencies.auth import Identity, require_identity
from wageconnect.models.base import get_db
from wageconnect.models.user import User
from wageconnect.routes.auth import set_auth_cookie
from wageconnect.services.mailer import send_mail
from wageconnect.templating import page_context, templates

logger = logging.getLogger(__name__)
router = APIRouter(tags=["account"])


async def _load_user(db: AsyncSession, identity: Identity) -> User | None:
    return (await db.execute(select(User).where(User.id == identity.id))).scalar_one_or_none()


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    me = await _load_user(db, identity)
    ctx = await page_context(request, db, identity, me=me)
    return templates.TemplateResponse(request, "settings.html", ctx)


@router.post("/settings")
async def settings_submit(
    request: Request,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Rename the account. Blank names are ignored."""
    form = await request.form()
    name = str(form.get("name", "")).strip()
    me = await _load_user(db, identity)

    if not name or me is None:
        return RedirectResponse("/settings", status_code=303)

    me.name = name[:100]
    await db.commit()

    # The display name travels in the token, so issue a new one
    response = RedirectResponse("/settings?saved=1", status_code=303)
    set_auth_cookie(response, me)
    return response


@router.get("/mail", response_class=HTMLResponse)
async def mail_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    ctx = await page_context(request, db, identity)
    return templates.TemplateResponse(request, "mail.html", ctx)


@router.post("/mail")
async def mail_submit(
    request: Request,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Send a test message, to the caller's own address unless another is given."""
    form = await request.form()
    target = str(form.get("to", "")).strip()
    if not target:
        me = await _load_user(db, identity)
        target = me.email if me else ""
    subject = str(form.get("subject", "")).strip() or "Daily Wage Connector Test Email"
    message = str(form.get("message", "")).strip() or "Hello from Daily Wage Connector."

    try:
        await asyncio.to_thread(send_mail, target, subject, f"<p>{html.escape(message)}</p>")
    except Exception:
        logger.warning("Test mail to %s failed", target, exc_info=True)
        return RedirectResponse("/mail?err=1", status_code=303)
    return RedirectResponse("/mail?ok=1", status_code=303)
