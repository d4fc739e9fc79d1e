"""Role dashboards and wallet summaries."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.dependencies.auth import Identity, require_identity, require_poster, require_worker
from wageconnect.models.base import get_db
from wageconnect.services.dashboard_service import poster_wallet, user_dashboard, worker_dashboard, worker_wallet
from wageconnect.templating import page_context, templates

router = APIRouter(tags=["dashboards"])


@router.get("/dashboards/worker", response_class=HTMLResponse)
async def worker_dashboard_page(
    request: Request,
    identity: Identity = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
):
    data = await worker_dashboard(db, identity.id)
    ctx = await page_context(request, db, identity, **data)
    return templates.TemplateResponse(request, "worker/dashboard.html", ctx)


@router.get("/dashboards/user", response_class=HTMLResponse)
async def user_dashboard_page(
    request: Request,
    identity: Identity = Depends(require_poster),
    db: AsyncSession = Depends(get_db),
):
    data = await user_dashboard(db, identity.id)
    ctx = await page_context(request, db, identity, **data)
    return templates.TemplateResponse(request, "user/dashboard.html", ctx)


@router.get("/wallet", response_class=HTMLResponse)
async def wallet_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Spending summary for posters, earnings summary for workers."""
    if identity.is_poster:
        summary = await poster_wallet(db, identity.id)
        template = "user/wallet.html"
    else:
        summary = await worker_wallet(db, identity.id)
        template = "worker/wallet.html"
    ctx = await page_context(request, db, identity, summary=summary)
    return templates.TemplateResponse(request, template, ctx)
