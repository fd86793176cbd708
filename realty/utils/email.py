import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from realty.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server refuses or cannot be reached."""


def send_email(to_email: str, subject: str, html: str, text: str | None = None) -> None:
    """
    Send an email through the configured SMTP server.
    With no SMTP_HOST configured the message is logged instead (development).
    Raises EmailDeliveryError on any SMTP failure.
    """
    if not settings.SMTP_HOST:
        logger.info("=" * 60)
        logger.info(f"[EMAIL]  To      : {to_email}")
        logger.info(f"[EMAIL]  Subject : {subject}")
        logger.info(f"[EMAIL]  Body    : {text or html}")
        logger.info("=" * 60)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email
    if text:
        msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=15) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USERNAME:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.MAIL_FROM, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        raise EmailDeliveryError(str(e)) from e

    logger.info(f"[EMAIL] Sent '{subject}' to {to_email}")


def send_otp_email(to_email: str, otp_code: str) -> None:
    minutes = settings.OTP_EXPIRE_MINUTES
    subject = f"Your OTP | {settings.APP_NAME}"
    html = (
        f"<p>Your {settings.APP_NAME} verification code is "
        f'<strong style="font-size:18px">{otp_code}</strong>.</p>'
        f"<p>This code will expire in {minutes} minutes. "
        "If you did not request this, you can ignore this email.</p>"
    )
    send_email(to_email, subject, html, f"Your OTP code is {otp_code}")
