import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from ptbuddy.settings import get_settings

logger = logging.getLogger("ptbuddy.emailer")

SMTP_TIMEOUT_SECONDS = 15


def build_message(to_email: str, subject: str, body: str) -> EmailMessage:
    settings = get_settings()
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = formataddr((settings.smtp_sender_name, settings.smtp_sender_email))
    message["To"] = to_email
    message.set_content(body)
    return message


def deliver(message: EmailMessage) -> None:
    """Send ``message`` through the configured relay.

    Port 465 gets an implicit-TLS connection; other ports upgrade with
    STARTTLS when SMTP_USE_TLS is set. Raises on any SMTP failure.
    """
    settings = get_settings()
    if not settings.smtp_enabled:
        logger.info("SMTP disabled; skipped email to=%s subject=%r", message["To"], message["Subject"])
        return
    if not settings.smtp_host or not settings.smtp_sender_email:
        raise RuntimeError("SMTP is enabled but SMTP_HOST/SMTP_SENDER_EMAIL are not configured.")

    if settings.smtp_port == 465:
        client = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS)
    else:
        client = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS)

    with client as smtp:
        if settings.smtp_use_tls and settings.smtp_port != 465:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(message)
    logger.info("Sent email to=%s subject=%r", message["To"], message["Subject"])


def reset_code_body(code: str, recipient_name: str | None = None) -> str:
    ttl = get_settings().reset_code_ttl_minutes
    return "\n".join(
        [
            f"Hello {recipient_name or 'there'},",
            "",
            "Use this verification code to reset your PT Buddy password:",
            "",
            f"    {code}",
            "",
            f"The code expires in {ttl} minutes.",
            "If you did not ask for a password reset, you can ignore this email.",
        ]
    )


def send_reset_code_email(to_email: str, code: str, recipient_name: str | None = None) -> None:
    deliver(
        build_message(
            to_email,
            "PT Buddy password reset code",
            reset_code_body(code, recipient_name),
        )
    )
