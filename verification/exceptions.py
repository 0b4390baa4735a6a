"""
Errors raised by the verification services.

All of them are DRF `APIException` subclasses, so views can let them
propagate and DRF's exception handler renders `{"detail": ...}` with the
matching status code.

Taxonomy:
    - Input errors use `rest_framework.serializers.ValidationError` (400).
    - `InvalidCode` (400): mismatch, expiry, reuse or unknown code. The reason
      is deliberately not exposed.
    - `InvalidCredentials` (400): the current password check failed.
    - `UpstreamFailure` (500): store, notifier or credential store failed;
      the whole request can be retried.
    - `VerifiedNotApplied` (500): the code was consumed but the credential
      could not be applied; retry the apply step by user id.
    - `ResendTooSoon` (429): a fresh code was requested inside the cooldown.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, Throttled


class InvalidCode(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Invalid or expired verification code.")
    default_code = "invalid_code"


class InvalidCredentials(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Current password is incorrect.")
    default_code = "invalid_credentials"


class UpstreamFailure(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("A required service is unavailable. Please try again.")
    default_code = "upstream_failure"


class StoreUnavailable(UpstreamFailure):
    default_detail = _("Verification storage is unavailable. Please try again.")
    default_code = "store_unavailable"


class CodeNotDelivered(UpstreamFailure):
    """The code was issued and stored, but the email could not be sent."""

    default_detail = _("Failed to send the verification email. Please try again.")
    default_code = "code_not_delivered"


class VerifiedNotApplied(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _(
        "The code was verified but the password could not be updated. "
        "Retry applying the change."
    )
    default_code = "verified_not_applied"


class ResendTooSoon(Throttled):
    default_detail = _("Please wait before requesting a new code.")
    default_code = "resend_too_soon"
