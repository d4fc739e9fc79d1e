"""Pytest configuration and fixtures."""

import os
import secrets
import tempfile
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import bcrypt
import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="wageconnect-tests-")
_DB_PATH = os.path.join(_TMP_DIR, "test.db")

# Settings are read once at import, so the environment must be ready first
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["JWT_SECRET_KEY"] = f"test-only-{secrets.token_urlsafe(32)}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["MAIL_BACKEND"] = "inline"
os.environ.pop("REDIS_URL", None)
os.environ.pop("SMTP_HOST", None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from wageconnect.dependencies.auth import Identity  # noqa: E402
from wageconnect.main import app  # noqa: E402
from wageconnect.models import Base, Job, Notification, User  # noqa: E402
from wageconnect.models.base import get_db  # noqa: E402
from wageconnect.services.auth_service import create_access_token  # noqa: E402

PASSWORD = "secret123"
_PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()

sync_engine = create_engine(f"sqlite:///{_DB_PATH}")
async_engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
TestSession = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def reset_db():
    """Fresh schema for every test."""
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)
    yield


@pytest.fixture(autouse=True)
def events(monkeypatch):
    """Capture real-time events instead of emitting them."""
    captured = []

    async def _fake_publish(event, payload, rooms):
        captured.append({"event": event, "payload": payload, "rooms": list(rooms)})

    monkeypatch.setattr("wageconnect.services.notifier.publish", _fake_publish)
    return captured


@pytest.fixture(autouse=True)
def sent_mail(monkeypatch):
    """Capture outgoing e-mail instead of talking to SMTP."""
    captured = []

    def _fake_send_mail(to, subject, html, text=None):
        captured.append({"to": to, "subject": subject, "html": html})
        return True

    monkeypatch.setattr("wageconnect.services.notifier.send_mail", _fake_send_mail)
    return captured


async def _override_get_db():
    async with TestSession() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture
def client():
    """Create a test client bound to the test database."""
    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()


@pytest.fixture
async def db():
    """Async session for service-level tests."""
    async with TestSession() as session:
        yield session


@pytest.fixture
async def other_db():
    """A second, independent session, standing in for a concurrent request."""
    async with TestSession() as session:
        yield session


def _snapshot(obj, *fields):
    return SimpleNamespace(**{field: getattr(obj, field) for field in fields})


@pytest.fixture
def make_user():
    """Factory inserting a user with the shared test password."""

    def _make(name="Test User", email=None, role="user"):
        user = User(
            id=uuid.uuid4(),
            name=name,
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            hashed_password=_PASSWORD_HASH,
            role=role,
        )
        with Session(sync_engine, expire_on_commit=False) as session:
            session.add(user)
            session.commit()
        return _snapshot(user, "id", "name", "email", "role")

    return _make


@pytest.fixture
def make_job():
    """Factory inserting a job directly, in any state."""

    def _make(poster, title="Paint Wall", status="open", worker=None, wage=100.0,
              location="Salt Lake, Kolkata", description="Paint one wall", completed_at=None):
        if status == "completed" and completed_at is None:
            completed_at = datetime.now(timezone.utc)
        job = Job(
            id=uuid.uuid4(),
            title=title,
            description=description,
            wage=wage,
            location=location,
            status=status,
            posted_by_id=poster.id,
            applied_by_id=worker.id if worker else None,
            completed_at=completed_at,
        )
        with Session(sync_engine, expire_on_commit=False) as session:
            session.add(job)
            session.commit()
        return _snapshot(job, "id", "title", "status", "wage")

    return _make


@pytest.fixture
def load_job():
    """Read a job's current row back from the database."""

    def _load(job_id):
        with Session(sync_engine) as session:
            job = session.get(Job, job_id)
            if job is None:
                return None
            return _snapshot(job, "id", "title", "description", "wage", "location", "status",
                             "posted_by_id", "applied_by_id", "completed_at")

    return _load


@pytest.fixture
def notifications_for():
    """List (type, message, is_read) tuples stored for a recipient."""

    def _list(user):
        with Session(sync_engine) as session:
            rows = session.query(Notification).filter(Notification.recipient_id == user.id).all()
            return [(n.type, n.message, n.is_read) for n in rows]

    return _list


@pytest.fixture
def auth_headers():
    """Bearer header carrying a token for the given user."""

    def _headers(user) -> dict:
        token = create_access_token(user.id, user.role, user.name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def as_identity():
    def _identity(user) -> Identity:
        return Identity(id=user.id, role=user.role, name=user.name)

    return _identity


@pytest.fixture
def add_notifications():
    """Insert notifications for a recipient directly."""

    def _add(user, *messages, is_read=False, type_="New Job"):
        with Session(sync_engine) as session:
            session.add_all(
                Notification(type=type_, message=message, recipient_id=user.id, is_read=is_read)
                for message in messages
            )
            session.commit()

    return _add


@pytest.fixture
def unsafe_client():
    """Test client that returns 500 responses instead of raising."""
    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app, follow_redirects=False, raise_server_exceptions=False)
    app.dependency_overrides.clear()
