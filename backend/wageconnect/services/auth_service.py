"""Authentication helpers: bcrypt password hashing and JWT issuance."""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from wageconnect.config import Settings, get_settings
from wageconnect.models.user import ROLES


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    user_id,
    role: str,
    name: str,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed token carrying the user's id, role and display name."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "role": role,
        "name": name,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict | None:
    """Decode and validate a token. Returns None when it is invalid or expired."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    role = str(payload.get("role") or "").lower()
    if not payload.get("sub") or role not in ROLES:
        return None
    payload["role"] = role
    return payload
