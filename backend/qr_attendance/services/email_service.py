"""Outgoing account emails sent through Flask-Mail."""
import logging
from urllib.parse import urlencode

from flask import current_app
from flask_mail import Message

from qr_attendance import mail

logger = logging.getLogger(__name__)


class EmailService:
    """Plain-text verification and password reset emails."""

    @staticmethod
    def send(to_email: str, subject: str, body: str) -> bool:
        """Send one email. Returns False when the mail server refuses it."""
        msg = Message(
            subject=subject,
            sender=current_app.config.get('MAIL_DEFAULT_SENDER'),
            recipients=[to_email],
            body=body
        )
        try:
            mail.send(msg)
        except Exception as e:
            logger.error('Failed to send "%s" to %s: %s', subject, to_email, e)
            return False
        return True

    @staticmethod
    def _link(path: str, token: str) -> str:
        base = current_app.config['FRONTEND_URL'].rstrip('/')
        return f"{base}/{path}?{urlencode({'token': token})}"

    @staticmethod
    def send_verification_email(to_email: str, token: str) -> bool:
        link = EmailService._link('verify-email', token)
        body = (
            "Welcome to QR Attendance.\n\n"
            f"Confirm your email address by opening this link:\n{link}\n\n"
            "The link expires in one hour."
        )
        return EmailService.send(to_email, 'Verify your email address', body)

    @staticmethod
    def send_password_reset_email(to_email: str, token: str) -> bool:
        link = EmailService._link('reset-password', token)
        body = (
            "A password reset was requested for your QR Attendance account.\n\n"
            f"Choose a new password here:\n{link}\n\n"
            "If you did not ask for this, you can ignore this email."
        )
        return EmailService.send(to_email, 'Reset your password', body)
