"""Outbound e-mail over SMTP."""

import logging
import smtplib
from email.message import EmailMessage

from wageconnect.config import get_settings

logger = logging.getLogger(__name__)


def send_mail(to: str, subject: str, html: str, text: str | None = None) -> bool:
    """Send one message. Returns False when SMTP is not configured.

    Blocking; callers on the event loop run it in a thread. SMTP errors
    propagate to the caller.
    """
    settings = get_settings()
    if not settings.smtp_host:
        logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
        return False

    message = EmailMessage()
    message["From"] = settings.mail_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text or "This message requires an HTML-capable mail client.")
    message.add_alternative(html, subtype="html")

    smtp_class = smtplib.SMTP_SSL if settings.smtp_secure else smtplib.SMTP
    with smtp_class(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as smtp:
        if not settings.smtp_secure and settings.smtp_port == 587:
            smtp.starttls()
        if settings.smtp_user and settings.smtp_password:
            smtp.login(settings.smtp_user, settings.smtp_password)
        smtp.send_message(message)

    logger.info("Sent email to %s: %s", to, subject)
    return True
