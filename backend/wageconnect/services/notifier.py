"""Best-effort side effects of job events: in-app notices, real-time events, e-mail.

Every method here swallows and logs its own failures. Callers commit their
primary write first, so a failed side effect is lost rather than rolled back
(at-most-once delivery).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable

from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wageconnect.config import get_settings
from wageconnect.models.base import get_db
from wageconnect.models.notification import Notification
from wageconnect.realtime import publish
from wageconnect.services.mailer import send_mail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingMail:
    to: str
    subject: str
    html: str


async def _deliver(mail: OutgoingMail):
    if get_settings().mail_backend == "celery":
        from wageconnect.tasks.mail_tasks import send_email
        await asyncio.to_thread(send_email.delay, mail.to, mail.subject, mail.html)
    else:
        await asyncio.to_thread(send_mail, mail.to, mail.subject, mail.html)


async def deliver_all(messages: list[OutgoingMail]) -> list:
    """Send every message concurrently and collect all outcomes.

    One recipient's failure never affects the others. Returns the per-message
    results in order (an exception instance for failures).
    """
    results = await asyncio.gather(*(_deliver(m) for m in messages), return_exceptions=True)
    for mail, result in zip(messages, results):
        if isinstance(result, BaseException):
            logger.warning("Email to %s failed: %s", mail.to, result)
    return results


class Notifier:
    """Fans out side effects for one request."""

    def __init__(self, db: AsyncSession, background_tasks: BackgroundTasks | None = None):
        self.db = db
        self.background_tasks = background_tasks

    async def notify(self, recipient_ids: Iterable, type_: str, message: str) -> int:
        """Insert one notification per recipient. Returns how many were stored."""
        rows = [
            Notification(type=type_, message=message, recipient_id=recipient_id)
            for recipient_id in recipient_ids
            if recipient_id is not None
        ]
        if not rows:
            return 0
        try:
            self.db.add_all(rows)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.warning("Failed to store %d %r notifications", len(rows), type_, exc_info=True)
            return 0
        return len(rows)

    async def broadcast(self, event: str, payload: dict, rooms: list[str]):
        try:
            await publish(event, payload, rooms)
        except Exception:
            logger.warning("Failed to publish %s", event, exc_info=True)

    async def email(self, messages: Iterable[OutgoingMail]):
        """Send mail after the response when running in a request, else inline."""
        messages = [m for m in messages if m.to]
        if not messages:
            return
        if self.background_tasks is not None:
            self.background_tasks.add_task(deliver_all, messages)
        else:
            await deliver_all(messages)


def get_notifier(background_tasks: BackgroundTasks, db: AsyncSession = Depends(get_db)) -> Notifier:
    return Notifier(db, background_tasks)
