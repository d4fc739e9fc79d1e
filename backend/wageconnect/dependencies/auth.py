"""Authentication dependencies for FastAPI routes.

The signed token is the only source of truth: no session store or user lookup
is consulted, so a token stays valid until it expires.
"""

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, Request

from wageconnect.config import get_settings
from wageconnect.exceptions import NotAuthenticatedException
from wageconnect.models.user import ROLE_USER, ROLE_WORKER
from wageconnect.services.auth_service import decode_access_token


@dataclass(frozen=True)
class Identity:
    """Who is making the request, as decoded from the token."""

    id: UUID
    role: str
    name: str

    @property
    def is_poster(self) -> bool:
        return self.role == ROLE_USER

    @property
    def is_worker(self) -> bool:
        return self.role == ROLE_WORKER


def extract_token(cookies: dict, authorization: str | None) -> str | None:
    """Pick the token from the auth cookie, falling back to a Bearer header."""
    token = cookies.get(get_settings().auth_cookie_name)
    if token:
        return token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def identity_from_token(token: str | None) -> Identity | None:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload:
        return None
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        return None
    return Identity(id=user_id, role=payload["role"], name=payload.get("name") or "")


def get_identity(request: Request) -> Identity | None:
    """Return the caller's identity or None."""
    token = extract_token(request.cookies, request.headers.get("Authorization"))
    return identity_from_token(token)


def require_identity(request: Request) -> Identity:
    """Return the caller's identity or redirect to login."""
    identity = get_identity(request)
    if identity is None:
        raise NotAuthenticatedException()
    return identity


def require_roles(*roles: str):
    """Build a dependency restricting a route to the given roles."""

    def _check_role(identity: Identity = Depends(require_identity)) -> Identity:
        if identity.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return identity

    return _check_role


require_poster = require_roles(ROLE_USER)
require_worker = require_roles(ROLE_WORKER)
