"""Shared Jinja environment and page context for HTML routes."""

from fastapi import Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.config import PACKAGE_DIR
from wageconnect.dependencies.auth import Identity
from wageconnect.services.notification_service import unread_count

templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))

# One-shot confirmations keyed by the redirect query flag that triggers them
FLASH_MESSAGES = {
    "created": "Job created successfully.",
    "updated": "Job updated.",
    "deleted": "Job deleted.",
    "applied": "You applied for the job.",
    "completed": "Job marked as completed.",
    "read": "All notifications marked as read.",
    "signup": "Welcome! Your account is ready.",
    "login": "Logged in successfully.",
    "ok": "Mail sent.",
    "err": "Mail could not be sent.",
    "saved": "Settings saved.",
}


def flash_message(request: Request) -> str | None:
    for flag, message in FLASH_MESSAGES.items():
        if request.query_params.get(flag) == "1":
            return message
    return None


def wants_json(request: Request) -> bool:
    """True when the client prefers JSON over an HTML page."""
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


async def page_context(request: Request, db: AsyncSession | None, identity: Identity | None, **extra) -> dict:
    """Build common template context: current user, unread badge, flash message."""
    unread = 0
    if identity is not None and db is not None:
        unread = await unread_count(db, identity.id)
    return {
        "current_user": identity,
        "unread_count": unread,
        "current_path": request.url.path,
        "flash": flash_message(request),
        **extra,
    }
