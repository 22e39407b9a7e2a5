"""Outbound email for account flows."""

import aiosmtplib
import structlog

from authgate.config import get_settings

logger = structlog.get_logger(__name__)

RESET_SUBJECT = "Your password reset token (valid for {minutes} min)"


class EmailService:
    """Send plain-text emails over SMTP."""

    async def send_email(self, to_email: str, subject: str, body: str) -> bool:
        """Send a plain-text email.

        Returns True on success, False on any failure, including addresses the
        transport cannot encode. Failures are logged, not raised; callers
        decide how to compensate.
        """
        settings = get_settings()

        message = (
            f"From: {settings.email_from}\r\n"
            f"To: {to_email}\r\n"
            f"Subject: {subject}\r\n"
            f"Content-Type: text/plain; charset=utf-8\r\n"
            f"\r\n"
            f"{body}"
        )

        try:
            await aiosmtplib.send(
                message,
                sender=settings.email_from,
                recipients=[to_email],
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username or None,
                password=settings.smtp_password or None,
                use_tls=settings.smtp_use_tls,
            )
        except Exception as e:
            logger.error("email_send_failed", to=to_email, subject=subject, error=str(e))
            return False

        logger.info("email_sent", to=to_email, subject=subject)
        return True

    async def send_password_reset(self, to_email: str, reset_url: str) -> bool:
        """Send the password reset link."""
        minutes = get_settings().password_reset_expires_minutes
        body = (
            "Forgot your password? Submit a PATCH request with your new password "
            f"and passwordConfirm to:\n\n{reset_url}\n\n"
            "If you didn't forget your password, please ignore this email."
        )
        return await self.send_email(
            to_email,
            RESET_SUBJECT.format(minutes=minutes),
            body,
        )
