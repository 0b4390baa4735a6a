"""
Verification flows built from the generator, the store and a notifier.

Two services share the same primitives:

    - `OTPLoginService`: email one-time passwords. `issue(email)` stores and
      emails a code, `verify(email, code)` consumes it.
    - `PasswordChangeService`: `initiate(user_id, current, new)` checks the
      current password and stages the new one next to a code;
      `confirm(user_id, code)` consumes the code and applies the staged
      password.

Collaborators are passed in. `build_otp_login_service()` and
`build_password_change_service()` wire the production defaults.

Example:
    >>> service = build_otp_login_service()
    >>> receipt = service.issue("a@x.com")
    >>> service.verify("a@x.com", "123456")
    True
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from accounts.credentials import UserCredentialStore
from config.logging import get_logger

from .constants import CodePurpose
from .exceptions import (
    InvalidCode,
    InvalidCredentials,
    ResendTooSoon,
    UpstreamFailure,
    VerifiedNotApplied,
)
from .generators import generate_code
from .notifiers import (
    EmailNotifier,
    render_otp_email,
    render_password_change_code_email,
    render_password_changed_email,
)
from .store import VerificationCodeStore
from .verifier import CodeVerifier

log = get_logger(__name__)


@dataclass(frozen=True)
class IssueReceipt:
    """
    What an issuance produced.

    `delivered` is False when the code was stored but the email could not be
    sent; the code stays valid until `expires_at` and a new request
    supersedes it.
    """

    subject: str
    purpose: str
    expires_at: datetime
    delivered: bool


class _CodeIssuingService:
    purpose: str = ""

    def __init__(
        self,
        store: VerificationCodeStore,
        notifier,
        generator: Callable[[], str] = generate_code,
        ttl_seconds: Optional[int] = None,
        resend_cooldown_seconds: Optional[int] = None,
    ):
        conf = settings.VERIFICATION
        self.store = store
        self.notifier = notifier
        self.generator = generator
        self.ttl = timedelta(
            seconds=conf["CODE_TTL_SECONDS"] if ttl_seconds is None else ttl_seconds
        )
        self.resend_cooldown = timedelta(
            seconds=(
                conf["RESEND_COOLDOWN_SECONDS"]
                if resend_cooldown_seconds is None
                else resend_cooldown_seconds
            )
        )
        self.verifier = CodeVerifier(store, code_length=conf["CODE_LENGTH"])

    def _check_resend_cooldown(self, subject: str) -> None:
        if self.resend_cooldown <= timedelta(0):
            return
        expires_at = self.store.peek_expiry(subject, self.purpose)
        if expires_at is None:
            return
        issued_at = expires_at - self.ttl
        wait = (issued_at + self.resend_cooldown - timezone.now()).total_seconds()
        if wait > 0:
            log.info("verification_resend_too_soon", subject=subject, purpose=self.purpose)
            raise ResendTooSoon(wait=math.ceil(wait))

    def _issue(self, subject: str, payload: Optional[str] = None):
        self._check_resend_cooldown(subject)
        code = self.generator()
        expires_at = timezone.now() + self.ttl
        self.store.put(subject, self.purpose, code, expires_at, payload=payload)
        log.info(
            "verification_code_issued",
            subject=subject,
            purpose=self.purpose,
            expires_at=expires_at.isoformat(),
        )
        return code, expires_at

    def _deliver(self, subject: str, destination: str, email) -> bool:
        email_subject, body_html = email
        result = self.notifier.send(destination, email_subject, body_html)
        if not result.success:
            # The stored code stays valid; the client may ask for a new one.
            log.warning(
                "verification_code_undelivered",
                subject=subject,
                purpose=self.purpose,
                error=result.error,
            )
        return result.success


class OTPLoginService(_CodeIssuingService):
    """
    Email OTP login confirmation.

    The caller owns the session side effect; this service only answers
    whether the code was valid.
    """

    purpose = CodePurpose.OTP_LOGIN

    @staticmethod
    def _subject(email: str) -> str:
        subject = (email or "").strip().lower()
        if not subject:
            raise serializers.ValidationError({"email": [_("Email is required.")]})
        return subject

    def issue(self, email: str) -> IssueReceipt:
        """Generate, store and email a login code for `email`."""

        subject = self._subject(email)
        code, expires_at = self._issue(subject)
        delivered = self._deliver(subject, subject, render_otp_email(code))
        return IssueReceipt(
            subject=subject,
            purpose=self.purpose,
            expires_at=expires_at,
            delivered=delivered,
        )

    def verify(self, email: str, code: str) -> bool:
        """
        Consume the login code for `email`.

        Raises:
            InvalidCode: For any failure; the reason is only logged.
        """

        outcome = self.verifier.verify(self._subject(email), self.purpose, code)
        if not outcome.valid:
            raise InvalidCode()
        return True


class PasswordChangeService(_CodeIssuingService):
    """
    Password change confirmed by an emailed code.

    The new password is encoded and staged next to the code at `initiate`
    time and only written to the account once `confirm` consumes the code.
    If writing it fails after the code was consumed, `VerifiedNotApplied` is
    raised and `retry_apply(user_id)` finishes the job without a new code.
    """

    purpose = CodePurpose.PASSWORD_CHANGE

    def __init__(self, store, notifier, credentials: UserCredentialStore, **kwargs):
        super().__init__(store, notifier, **kwargs)
        self.credentials = credentials

    def initiate(self, user_id, current_password: str, new_password: str) -> IssueReceipt:
        """
        Check `current_password` and send a code confirming `new_password`.

        Raises:
            InvalidCredentials: The current password is wrong. No code is
                issued.
            ValidationError: The new password equals the current one.
            ResendTooSoon: A code was issued inside the resend cooldown.
        """

        subject = str(user_id)

        if not self.credentials.verify(user_id, current_password):
            log.warning("password_change_rejected", user_id=subject, reason="credentials")
            raise InvalidCredentials()

        if self.credentials.verify(user_id, new_password):
            raise serializers.ValidationError(
                {
                    "newPassword": [
                        _("New password must be different from current password.")
                    ]
                }
            )

        contact = self.credentials.contact(user_id)
        if contact is None:
            raise InvalidCredentials()

        code, expires_at = self._issue(
            subject, payload=self.credentials.encode(new_password)
        )
        delivered = self._deliver(
            subject,
            contact.email,
            render_password_change_code_email(contact.username, code),
        )
        return IssueReceipt(
            subject=subject,
            purpose=self.purpose,
            expires_at=expires_at,
            delivered=delivered,
        )

    def confirm(self, user_id, code: str) -> None:
        """
        Consume `code` and apply the staged password.

        Raises:
            InvalidCode: The code is wrong, expired, reused or unknown.
            VerifiedNotApplied: The code was consumed but the password could
                not be written.
        """

        subject = str(user_id)
        outcome = self.verifier.verify(subject, self.purpose, code)
        if not outcome.valid:
            raise InvalidCode()
        self._apply(user_id, outcome.payload, outcome.version)

    def retry_apply(self, user_id) -> bool:
        """
        Apply a staged password whose code was already consumed.

        Returns:
            bool: False when nothing is waiting to be applied.
        """

        pending = self.store.get_unapplied_payload(str(user_id), self.purpose)
        if pending is None:
            return False
        self._apply(user_id, pending.payload, pending.version)
        return True

    def _apply(self, user_id, payload: Optional[str], version: Optional[int]) -> None:
        subject = str(user_id)
        if not payload:
            log.error("password_change_missing_payload", user_id=subject)
            raise VerifiedNotApplied()

        result = self.credentials.apply(user_id, payload)
        if not result.success:
            log.error("password_change_not_applied", user_id=subject, error=result.error)
            raise VerifiedNotApplied()

        self.store.mark_applied(subject, self.purpose, version)
        log.info("password_changed", user_id=subject)
        self._send_confirmation(user_id)

    def _send_confirmation(self, user_id) -> None:
        # The password is already changed; nothing here may fail `confirm`.
        try:
            contact = self.credentials.contact(user_id)
        except UpstreamFailure as exc:
            log.warning(
                "password_changed_email_failed",
                user_id=str(user_id),
                error=str(exc.detail),
                error_type=type(exc.__cause__ or exc).__name__,
            )
            return
        if contact is None:
            return
        email_subject, body_html = render_password_changed_email(
            contact.username, contact.role
        )
        result = self.notifier.send(contact.email, email_subject, body_html)
        if not result.success:
            log.warning(
                "password_changed_email_failed", user_id=str(user_id), error=result.error
            )


def build_otp_login_service() -> OTPLoginService:
    return OTPLoginService(store=VerificationCodeStore(), notifier=EmailNotifier())


def build_password_change_service() -> PasswordChangeService:
    return PasswordChangeService(
        store=VerificationCodeStore(),
        notifier=EmailNotifier(),
        credentials=UserCredentialStore(),
    )
