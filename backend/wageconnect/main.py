"""FastAPI application entry point.

Run with ``uvicorn wageconnect.main:socket_app`` so Socket.IO shares the port.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis.asyncio as aioredis
import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from wageconnect import __version__
from wageconnect.config import PACKAGE_DIR, get_settings
from wageconnect.exceptions import ForbiddenAction, JobNotFound, JobStateConflict, NotAuthenticatedException
from wageconnect.models import Base
from wageconnect.models.base import engine, AsyncSessionLocal
from wageconnect.realtime import sio
from wageconnect.routes import router as web_router
from wageconnect.templating import templates, wants_json

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Server Error",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Job marketplace connecting job posters with day labourers",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


def error_response(request: Request, status_code: int, message: str | None = None):
    """Render an error page for browsers, JSON for API-style clients."""
    title = ERROR_TITLES.get(status_code, "Error")
    message = message or title
    if wants_json(request):
        return JSONResponse({"message": message}, status_code=status_code)
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "current_user": None,
            "unread_count": 0,
            "current_path": request.url.path,
            "flash": None,
            "title": title,
            "status_code": status_code,
            "message": message,
        },
        status_code=status_code,
    )


@app.exception_handler(NotAuthenticatedException)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedException):
    if wants_json(request):
        return JSONResponse({"message": "Authentication required"}, status_code=401)
    return RedirectResponse("/auth/login", status_code=303)


@app.exception_handler(JobNotFound)
@app.exception_handler(ForbiddenAction)
@app.exception_handler(JobStateConflict)
async def domain_error_handler(request: Request, exc: Exception):
    return error_response(request, exc.status_code, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else None)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(request, 500)


# Web routes (HTML pages)
app.include_router(web_router)

# Static files and uploaded profile photos
app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


@app.get("/health/detailed")
async def detailed_health_check():
    checks = {}

    # Database
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            checks["database"] = {"ok": True}
    except Exception as e:
        checks["database"] = {"ok": False, "message": str(e)}

    # Redis (Socket.IO pub/sub and mail queue)
    if settings.redis_url:
        try:
            client = aioredis.from_url(settings.redis_url, socket_timeout=5)
            await client.ping()
            await client.aclose()
            checks["redis"] = {"ok": True}
        except Exception as e:
            checks["redis"] = {"ok": False, "message": str(e)}

    checks["mail"] = {"ok": True, "configured": bool(settings.smtp_host), "backend": settings.mail_backend}

    all_ok = all(check.get("ok", False) for check in checks.values())
    status = "healthy" if all_ok else "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


# ASGI entry point: Socket.IO in front, FastAPI for everything else
socket_app = socketio.ASGIApp(sio, other_asgi_app=app, socketio_path="socket.io")
