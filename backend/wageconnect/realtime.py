"""Socket.IO server for real-time job events.

Connections must carry a valid token (auth cookie, Authorization header or
the ``auth={"token": ...}`` handshake payload). Each connection joins a room
for its user and one for its role, and events are emitted to rooms only.
"""

import logging
from http.cookies import SimpleCookie

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from wageconnect.config import get_settings
from wageconnect.dependencies.auth import extract_token, identity_from_token

logger = logging.getLogger(__name__)
settings = get_settings()

EVENT_JOB_NEW = "job:new"
EVENT_JOB_APPLIED = "job:applied"
EVENT_JOB_COMPLETED = "job:completed"
EVENT_JOB_DELETED = "job:deleted"


def user_room(user_id) -> str:
    return f"user:{user_id}"


def role_room(role: str) -> str:
    return f"role:{role}"


def _client_manager():
    if settings.redis_url:
        return socketio.AsyncRedisManager(settings.redis_url)
    return None


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    client_manager=_client_manager(),
)


def _token_from_environ(environ: dict, auth) -> str | None:
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]
    cookie = SimpleCookie()
    cookie.load(environ.get("HTTP_COOKIE", ""))
    cookies = {key: morsel.value for key, morsel in cookie.items()}
    return extract_token(cookies, environ.get("HTTP_AUTHORIZATION"))


@sio.event
async def connect(sid, environ, auth=None):
    identity = identity_from_token(_token_from_environ(environ, auth))
    if identity is None:
        raise SocketConnectionRefused("authentication required")

    await sio.enter_room(sid, user_room(identity.id))
    await sio.enter_room(sid, role_room(identity.role))
    logger.debug("Socket %s connected as %s (%s)", sid, identity.id, identity.role)
    await sio.emit("connected", {"ok": True}, to=sid)


@sio.event
async def disconnect(sid):
    logger.debug("Socket %s disconnected", sid)


async def publish(event: str, payload: dict, rooms: list[str]):
    """Emit an event to the given rooms without waiting for acknowledgement."""
    if not rooms:
        return
    await sio.emit(event, payload, to=rooms)
