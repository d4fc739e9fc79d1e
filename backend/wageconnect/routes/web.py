"""Public web pages: home and marketing content."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.dependencies.auth import Identity, get_identity
from wageconnect.models.base import get_db
from wageconnect.templating import page_context, templates

router = APIRouter()


async def _render(request: Request, db: AsyncSession, identity: Identity | None, template: str, title: str):
    ctx = await page_context(request, db, identity, title=title)
    return templates.TemplateResponse(request, template, ctx)


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await _render(request, db, identity, "index.html", "Daily Wage Connector")


@router.get("/how-it-works", response_class=HTMLResponse)
async def how_it_works(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await _render(request, db, identity, "pages/how_it_works.html", "How It Works")


@router.get("/features", response_class=HTMLResponse)
async def features(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await _render(request, db, identity, "pages/features.html", "Features")


@router.get("/testimonials", response_class=HTMLResponse)
async def testimonials(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await _render(request, db, identity, "pages/testimonials.html", "Testimonials")


@router.get("/contact", response_class=HTMLResponse)
async def contact(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await _render(request, db, identity, "pages/contact.html", "Contact")
