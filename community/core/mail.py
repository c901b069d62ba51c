"""
Outgoing mail — named plain-text templates delivered over SMTP.

``send_mail`` is meant to be queued with FastAPI ``BackgroundTasks`` so the
request never waits on delivery. Delivery failures are logged, never raised:
the account and token created before dispatch must survive a mail outage.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from community.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATES: dict[str, tuple[str, str]] = {
    "auth/register": (
        "Registration confirmation",
        "Hello, {username}!\n\n"
        "Thank you for registering. To activate your account open the link below:\n\n"
        "{confirmation_url}\n\n"
        "If you did not register, just ignore this message.\n",
    ),
}


def render(template: str, data: dict) -> tuple[str, str]:
    """Return ``(subject, body)`` for a named template."""
    try:
        subject, body = TEMPLATES[template]
    except KeyError:
        raise ValueError(f"Unknown mail template: {template}") from None
    return subject, body.format(**data)


def smtp_is_configured() -> bool:
    return bool(settings.MAIL_HOST and settings.MAIL_FROM)


def send_mail(template: str, recipient: str, data: dict) -> bool:
    """Render and deliver one message. Returns ``True`` if it was handed to SMTP."""
    subject, body = render(template, data)

    if not smtp_is_configured():
        logger.info("Mail backend not configured; '%s' to %s not sent", template, recipient)
        logger.debug("Mail body:\n%s", body)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM
    msg["To"] = recipient
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT, timeout=10) as smtp:
            if settings.MAIL_USE_TLS:
                smtp.starttls()
            if settings.MAIL_USERNAME:
                smtp.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Mail '%s' to %s failed: %s", template, recipient, exc, exc_info=True)
        return False

    logger.info("Mail '%s' sent to %s", template, recipient)
    return True
