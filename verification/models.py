"""
Persistent state of verification codes.

One row exists per `(subject, purpose)` pair. Issuing a new code for the
pair overwrites that row, which is how supersession works: the previous code
hash is gone, so the previous code can never match again.

Columns worth knowing about:
    - `code_hash`: keyed HMAC of the code (see `verification.generators`).
    - `version`: bumped on every write; the store uses it as the
      compare-and-swap guard when consuming.
    - `payload`: staged credential material for password changes, an encoded
      password hash. Cleared once applied, dropped on expiry.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .constants import CodePurpose, CodeStatus


class VerificationCode(models.Model):
    """
    A short-lived, single-use code bound to a subject and a purpose.

    Attributes:
        subject (str): Email address or user id the code is bound to.
        purpose (str): One of `CodePurpose`.
        code_hash (str): HMAC of the 6-digit code.
        status (str): One of `CodeStatus`.
        issued_at (datetime): When the current code was issued.
        expires_at (datetime): `issued_at` plus the configured TTL.
        payload (str): Staged credential (password change only).
        consumed_at (datetime): When the code was successfully verified.
        applied_at (datetime): When the staged payload was applied.
        version (int): Write counter used for compare-and-swap.
    """

    subject = models.CharField(max_length=254, verbose_name=_("subject"))
    purpose = models.CharField(
        max_length=32, choices=CodePurpose.choices, verbose_name=_("purpose")
    )
    code_hash = models.CharField(max_length=64, verbose_name=_("code hash"))
    status = models.CharField(
        max_length=16,
        choices=CodeStatus.choices,
        default=CodeStatus.PENDING,
        verbose_name=_("status"),
    )
    issued_at = models.DateTimeField(default=timezone.now, verbose_name=_("issued at"))
    expires_at = models.DateTimeField(verbose_name=_("expires at"))
    payload = models.TextField(blank=True, default="", verbose_name=_("payload"))
    consumed_at = models.DateTimeField(
        blank=True, null=True, verbose_name=_("consumed at")
    )
    applied_at = models.DateTimeField(
        blank=True, null=True, verbose_name=_("applied at")
    )
    version = models.PositiveIntegerField(default=0, verbose_name=_("version"))

    class Meta:
        verbose_name = _("verification code")
        verbose_name_plural = _("verification codes")
        constraints = [
            models.UniqueConstraint(
                fields=["subject", "purpose"], name="unique_code_per_subject_purpose"
            )
        ]
        indexes = [models.Index(fields=["expires_at"], name="verification_expires_idx")]

    def __str__(self):
        return f"{self.purpose} code for {self.subject} ({self.status})"

    def is_expired(self, now=None):
        """Return True once `expires_at` has passed, whatever the stored status."""

        now = now or timezone.now()
        return self.expires_at <= now
