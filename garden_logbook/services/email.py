"""
Async email sender using aiosmtplib with STARTTLS.

Reads EMAIL_HOST, EMAIL_PORT, EMAIL_USERNAME, EMAIL_PASSWORD and EMAIL_FROM via
Settings. If EMAIL_HOST is not configured, send_email() logs a warning and
returns False without raising. Delivery failures are logged, never raised.
"""
import logging
from email.mime.text import MIMEText

import aiosmtplib

from garden_logbook.core.config import settings

logger = logging.getLogger(__name__)


async def send_email(to: str, subject: str, body: str) -> bool:
    if not settings.EMAIL_HOST:
        logger.warning("email: EMAIL_HOST not configured, skipping send to %s", to)
        return False

    msg = MIMEText(body, "plain")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to

    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.EMAIL_HOST,
            port=settings.EMAIL_PORT,
            username=settings.EMAIL_USERNAME or None,
            password=settings.EMAIL_PASSWORD or None,
            start_tls=True,
        )
        logger.info("email: sent '%s' to %s", subject, to)
        return True
    except Exception as exc:
        logger.exception("email: failed to send '%s' to %s: %s", subject, to, exc)
        return False


async def send_garden_invite_email(to: str, garden_name: str, inviter_name: str) -> bool:
    body = (
        f"Hi,\n\n"
        f"{inviter_name} has invited you to join the garden \"{garden_name}\" on Garden Logbook.\n\n"
        f"Sign in to accept or decline the invitation:\n"
        f"{settings.APP_BASE_URL}/gardens/invites\n"
    )
    return await send_email(to, f"Garden Logbook: invitation to {garden_name}", body)
