"""
Enumerations for the verification-code subsystem.

`CodePurpose` and `CodeStatus` are stored in the database, so they are
Django `TextChoices`. `ConsumeStatus` is the precise, internal outcome of a
consume attempt; it is logged but never shown to API clients.
"""

import enum

from django.db import models


class CodePurpose(models.TextChoices):
    """
    Flow a verification code is valid for.

    A code issued for one purpose never validates a request for another.

    Attributes:
        OTP_LOGIN (str): Email one-time-password login confirmation.
        PASSWORD_CHANGE (str): Confirmation of a staged password change.
    """

    OTP_LOGIN = "otp_login", "OTP login"
    PASSWORD_CHANGE = "password_change", "Password change"


class CodeStatus(models.TextChoices):
    """
    Stored lifecycle state of a code.

    `EXPIRED` is written lazily, the first time an expired code is presented;
    `expires_at` is authoritative either way.
    """

    PENDING = "pending", "Pending"
    CONSUMED = "consumed", "Consumed"
    EXPIRED = "expired", "Expired"


class ConsumeStatus(enum.Enum):
    SUCCESS = "success"
    MISMATCH = "mismatch"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    ALREADY_CONSUMED = "already_consumed"


#: Purposes that may carry a staged payload.
PAYLOAD_PURPOSES = (CodePurpose.PASSWORD_CHANGE,)
