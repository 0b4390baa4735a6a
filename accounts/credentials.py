"""
Credential store backed by the custom user model.

The verification services never touch the user table directly. They talk to
this store, which exposes three operations:

    - `verify(user_id, credential)`: check a raw password, never mutates.
    - `apply(user_id, new_credential)`: replace the stored password with an
      already-encoded hash (as produced by `encode`).
    - `contact(user_id)`: the address and display data used for notifications.

Staged credentials are encoded with Django's password hashers *before* they
are stored next to a verification code, so a clear-text password never sits
in the verification table.
"""

from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.db import DatabaseError

from verification.exceptions import UpstreamFailure

User = get_user_model()


@dataclass(frozen=True)
class Contact:
    email: str
    username: str
    role: str


@dataclass(frozen=True)
class ApplyResult:
    success: bool
    error: Optional[str] = None


class UserCredentialStore:
    """Password verification and replacement for `CustomUser` rows."""

    def _get_user(self, user_id):
        try:
            return User.objects.filter(pk=int(user_id), is_active=True).first()
        except (TypeError, ValueError):
            return None
        except DatabaseError as exc:
            raise UpstreamFailure() from exc

    def encode(self, raw_password: str) -> str:
        return make_password(raw_password)

    def verify(self, user_id, credential: str) -> bool:
        """Return True if `credential` is the current password of `user_id`."""

        user = self._get_user(user_id)
        if user is None or not credential:
            return False
        return user.check_password(credential)

    def apply(self, user_id, new_credential: str) -> ApplyResult:
        """
        Store `new_credential` (an encoded hash) as the user's password.

        Writing the same hash twice leaves the row unchanged, so a retried
        apply is safe.
        """

        try:
            updated = User.objects.filter(pk=int(user_id)).update(
                password=new_credential
            )
        except (TypeError, ValueError):
            return ApplyResult(success=False, error="invalid user id")
        except DatabaseError as exc:
            return ApplyResult(success=False, error=str(exc))

        if not updated:
            return ApplyResult(success=False, error="user not found")
        return ApplyResult(success=True)

    def contact(self, user_id) -> Optional[Contact]:
        user = self._get_user(user_id)
        if user is None:
            return None
        return Contact(
            email=user.email,
            username=user.display_name,
            role=user.get_role_display(),
        )
