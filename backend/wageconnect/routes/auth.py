"""Authentication web routes: signup, login, logout."""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from wageconnect.config import get_settings
from wageconnect.dependencies.auth import Identity, get_identity
from wageconnect.models.base import get_db
from wageconnect.models.user import User, ROLE_USER
from wageconnect.schemas.auth import LoginForm, SignupForm, field_errors
from wageconnect.services.auth_service import create_access_token, hash_password, verify_password
from wageconnect.templating import page_context, templates, wants_json

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

ALLOWED_PHOTO_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def landing_path(role: str) -> str:
    return "/jobs/active" if role == ROLE_USER else "/jobs/available"


def set_auth_cookie(response, user: User):
    """Issue a fresh token for the user and store it in the httpOnly cookie."""
    settings = get_settings()
    token = create_access_token(user.id, user.role, user.name, settings)
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.jwt_expire_minutes * 60,
    )


async def _read_photo(upload) -> tuple[str, bytes] | None:
    """Return (file name, bytes) for an acceptable image upload.

    At most max_photo_bytes + 1 bytes are read, so callers can tell an
    oversized upload by its length.
    """
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    suffix = Path(upload.filename).suffix.lower()
    if suffix not in ALLOWED_PHOTO_SUFFIXES:
        return None
    data = await upload.read(get_settings().max_photo_bytes + 1)
    return f"{uuid.uuid4().hex}{suffix}", data


def _store_photo(name: str, data: bytes) -> str:
    directory = Path(get_settings().upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_bytes(data)
    return f"/uploads/{name}"


async def _form_error(request: Request, template: str, errors: list[dict], values: dict, status_code: int):
    if wants_json(request):
        return JSONResponse({"errors": errors}, status_code=status_code)
    ctx = await page_context(
        request, None, None,
        errors=errors,
        error=errors[0]["msg"] if errors else None,
        values=values,
    )
    return templates.TemplateResponse(request, template, ctx, status_code=status_code)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, identity: Identity | None = Depends(get_identity)):
    if identity:
        return RedirectResponse(landing_path(identity.role), status_code=303)
    ctx = await page_context(request, None, None, errors=[], error=None, values={})
    return templates.TemplateResponse(request, "auth/login.html", ctx)


@router.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    values = {"email": str(form.get("email", "")).strip()}

    try:
        data = LoginForm(email=form.get("email", ""), password=form.get("password", ""))
    except ValidationError as exc:
        return await _form_error(request, "auth/login.html", field_errors(exc), values, 400)

    user = (await db.execute(select(User).where(User.email == data.email))).scalar_one_or_none()
    if not user or not verify_password(data.password, user.hashed_password):
        errors = [{"field": "email", "msg": "Invalid credentials"}]
        return await _form_error(request, "auth/login.html", errors, values, 401)

    # Role always comes from the stored account, never from the form
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()

    response = RedirectResponse(f"{landing_path(user.role)}?login=1", status_code=303)
    set_auth_cookie(response, user)
    return response


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request, identity: Identity | None = Depends(get_identity)):
    if identity:
        return RedirectResponse(landing_path(identity.role), status_code=303)
    ctx = await page_context(request, None, None, errors=[], error=None, values={})
    return templates.TemplateResponse(request, "auth/signup.html", ctx)


@router.post("/signup", response_class=HTMLResponse)
async def signup_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    values = {
        "name": str(form.get("name", "")).strip(),
        "email": str(form.get("email", "")).strip(),
        "role": form.get("role", ""),
    }

    try:
        data = SignupForm(
            name=form.get("name", ""),
            email=form.get("email", ""),
            password=form.get("password", ""),
            role=form.get("role", ""),
        )
    except ValidationError as exc:
        return await _form_error(request, "auth/signup.html", field_errors(exc), values, 400)

    photo = await _read_photo(form.get("profile_photo"))
    limit = get_settings().max_photo_bytes
    if photo is not None and len(photo[1]) > limit:
        too_large = [{"field": "profile_photo", "msg": f"Photo must be at most {limit // 1024} KB"}]
        return await _form_error(request, "auth/signup.html", too_large, values, 400)

    duplicate = [{"field": "email", "msg": "Email already registered"}]
    existing = (await db.execute(select(User.id).where(User.email == data.email))).scalar_one_or_none()
    if existing:
        return await _form_error(request, "auth/signup.html", duplicate, values, 400)

    user = User(
        name=data.name,
        email=data.email,
        hashed_password=hash_password(data.password),
        role=data.role,
        last_login_at=datetime.now(timezone.utc),
    )
    db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return await _form_error(request, "auth/signup.html", duplicate, values, 400)

    # Written only once the account exists, so a rejected signup leaves no file
    if photo is not None:
        try:
            photo_url = _store_photo(*photo)
        except OSError:
            logger.warning("Could not store profile photo for %s", user.id, exc_info=True)
        else:
            user.profile_photo = photo_url
            await db.commit()

    logger.info("New %s account %s", user.role, user.id)
    response = RedirectResponse(f"{landing_path(user.role)}?signup=1", status_code=303)
    set_auth_cookie(response, user)
    return response


@router.post("/logout")
async def logout():
    response = RedirectResponse("/", status_code=303)
    response.delete_cookie(get_settings().auth_cookie_name)
    return response
