"""Celery task for queued e-mail delivery (MAIL_BACKEND=celery)."""

import logging

from wageconnect.tasks.celery_app import celery_app
from wageconnect.services.mailer import send_mail

logger = logging.getLogger(__name__)


@celery_app.task(name="wageconnect.tasks.mail_tasks.send_email")
def send_email(to: str, subject: str, html: str):
    """Deliver one message. Not retried: delivery is best effort."""
    sent = send_mail(to, subject, html)
    return {"to": to, "sent": sent}
