"""Transactional email delivery through the SendGrid HTTP API"""

from dataclasses import dataclass
import httpx
import structlog

from app.config import settings

logger = structlog.get_logger()

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass
class MailMessage:
    to: str
    subject: str
    body: str


def verification_message(to: str, name: str, link: str) -> MailMessage:
    return MailMessage(
        to=to,
        subject="Verify your email address",
        body=(
            f"Hi {name},\n\n"
            f"Please confirm your email address to start ordering:\n{link}\n\n"
            f"The link expires in {settings.email_token_expire_hours} hours."
        ),
    )


def password_reset_message(to: str, name: str, link: str) -> MailMessage:
    return MailMessage(
        to=to,
        subject="Reset your password",
        body=(
            f"Hi {name},\n\n"
            f"Use the link below to choose a new password:\n{link}\n\n"
            "If you did not ask for this you can ignore this email."
        ),
    )


def send_mail(message: MailMessage) -> bool:
    """Send a plain-text email. Returns False when delivery failed."""
    if not settings.sendgrid_api_key:
        logger.info(
            "Mail not sent, no provider configured",
            to=message.to,
            subject=message.subject,
        )
        return False

    payload = {
        "personalizations": [{"to": [{"email": message.to}]}],
        "from": {"email": settings.mail_from_email, "name": settings.mail_from_name},
        "subject": message.subject,
        "content": [{"type": "text/plain", "value": message.body}],
    }

    try:
        response = httpx.post(
            SENDGRID_URL,
            json=payload,
            headers={"Authorization": f"Bearer {settings.sendgrid_api_key}"},
            timeout=20.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Failed to send mail", to=message.to, error=str(e))
        return False

    logger.info("Mail sent", to=message.to, subject=message.subject)
    return True
