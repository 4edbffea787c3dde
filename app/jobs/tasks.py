"""Background job tasks"""

from uuid import UUID
import asyncio
import structlog

from app.jobs.celery_app import celery_app
from app.config import settings

logger = structlog.get_logger()


_loop = None


def run_async(coro):
    """Helper to run async functions in sync context

    Every task in a worker process runs on the same loop, which owns the
    pooled database connections.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


async def _load_user(user_id: str):
    from app.database import SessionLocal
    from app.models.user import User
    from sqlalchemy import select

    async with SessionLocal() as db:
        result = await db.execute(select(User).where(User.id == UUID(user_id)))
        return result.scalar_one_or_none()


@celery_app.task(name="send_verification_email")
def send_verification_email(user_id: str):
    """Email a verification link to a newly registered user"""
    logger.info("Sending verification email", user_id=user_id)

    async def _send():
        from app.api.auth import create_email_token
        from app.services.mail import send_mail, verification_message

        user = await _load_user(user_id)
        if not user:
            logger.warning("Verification email for unknown user", user_id=user_id)
            return
        if user.email_verified:
            return

        token = create_email_token(user, "verify_email")
        link = f"{settings.frontend_url}/verify-email?token={token}"
        send_mail(verification_message(user.email, user.name, link))

    run_async(_send())


@celery_app.task(name="send_password_reset_email")
def send_password_reset_email(user_id: str):
    """Email a password reset link"""
    logger.info("Sending password reset email", user_id=user_id)

    async def _send():
        from app.api.auth import create_email_token
        from app.services.mail import send_mail, password_reset_message

        user = await _load_user(user_id)
        if not user:
            logger.warning("Password reset for unknown user", user_id=user_id)
            return

        token = create_email_token(user, "password_reset")
        link = f"{settings.frontend_url}/reset-password?token={token}"
        send_mail(password_reset_message(user.email, user.name, link))

    run_async(_send())
