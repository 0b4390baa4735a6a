"""
Email delivery for verification codes and confirmations.

`EmailNotifier.send` is fire-and-report: it never raises for delivery
problems and returns a `NotificationResult` instead. Callers decide what a
failed delivery means; during issuance it does not undo the stored code.

Message bodies are Django templates under ``verification/emails/``.
"""

import smtplib
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from config.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: Optional[str] = None


class EmailNotifier:
    """Sends HTML emails through the configured Django email backend."""

    def __init__(self, from_email: Optional[str] = None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def send(self, destination: str, subject: str, body_html: str) -> NotificationResult:
        """
        Send one HTML email with a plain-text alternative.

        Returns:
            NotificationResult: `success=False` with the error message when
            the backend rejects or cannot reach the server.
        """

        message = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(body_html).strip(),
            from_email=self.from_email,
            to=[destination],
        )
        message.attach_alternative(body_html, "text/html")

        try:
            message.send(fail_silently=False)
        except (smtplib.SMTPException, OSError) as exc:
            log.error(
                "email_send_failed",
                destination=destination,
                subject=subject,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return NotificationResult(success=False, error=str(exc))

        log.info("email_sent", destination=destination, subject=subject)
        return NotificationResult(success=True)


def _site_name():
    return settings.VERIFICATION["SITE_NAME"]


def _ttl_minutes():
    return settings.VERIFICATION["CODE_TTL_SECONDS"] // 60


def render_otp_email(code: str) -> tuple[str, str]:
    """Subject and HTML body of the login code email."""

    context = {"code": code, "ttl_minutes": _ttl_minutes(), "site_name": _site_name()}
    subject = f"Your {_site_name()} Verification Code"
    return subject, render_to_string("verification/emails/otp_code.html", context)


def render_password_change_code_email(username: str, code: str) -> tuple[str, str]:
    """Subject and HTML body of the password-change verification email."""

    context = {
        "username": username,
        "code": code,
        "ttl_minutes": _ttl_minutes(),
        "site_name": _site_name(),
    }
    subject = f"Verify Your Password Change - {_site_name()}"
    return subject, render_to_string(
        "verification/emails/password_change_code.html", context
    )


def render_password_changed_email(username: str, role: str) -> tuple[str, str]:
    """Subject and HTML body of the password-changed confirmation."""

    context = {
        "username": username,
        "role": role,
        "changed_at": timezone.localtime(),
        "site_name": _site_name(),
    }
    subject = f"Your Password Has Been Changed - {_site_name()}"
    return subject, render_to_string(
        "verification/emails/password_changed.html", context
    )
