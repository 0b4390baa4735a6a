"""
Verification code generation and hashing.
"""

import secrets
import string
from typing import Optional

from django.conf import settings
from django.utils.crypto import constant_time_compare, salted_hmac

_HASH_SALT = "verification.generators.code_hash"


def generate_code(length: Optional[int] = None) -> str:
    """
    Generate a secure numeric verification code.

    Digits are drawn with `secrets.choice`, so every value in
    ``000000`` to ``999999`` is equally likely and leading zeros are kept.

    Args:
        length (int, optional): Number of digits. Defaults to
            ``VERIFICATION["CODE_LENGTH"]`` (6).

    Returns:
        str: The code, e.g. ``'049327'``.
    """

    if length is None:
        length = settings.VERIFICATION["CODE_LENGTH"]
    return "".join(secrets.choice(string.digits) for _ in range(length))


def hash_code(subject: str, purpose: str, code: str) -> str:
    """
    Keyed HMAC of a code, bound to its subject and purpose.

    Only this value is stored, so a leaked table does not reveal live codes.
    """

    message = f"{purpose}:{subject}:{code}"
    return salted_hmac(_HASH_SALT, message, algorithm="sha256").hexdigest()


def code_matches(subject: str, purpose: str, code: str, code_hash: str) -> bool:
    return constant_time_compare(hash_code(subject, purpose, code), code_hash)
