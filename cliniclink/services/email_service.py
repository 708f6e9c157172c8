import logging
import smtplib
from email.mime.text import MIMEText

from cliniclink.core.config import settings

logger = logging.getLogger(__name__)


def send_email_sync(to_email: str, subject: str, text_body: str) -> bool:
    """Send a plain-text email via SMTP (blocking). Run it off the event loop.

    Returns False when SMTP is not configured or delivery failed.
    """
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send of %r", subject)
        return False
    msg = MIMEText(text_body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
        return True
    except Exception as e:
        logger.exception("Failed to send email to %s: %s", to_email, e)
        return False
