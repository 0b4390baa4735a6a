"""
Custom user model for the marketplace.

Accounts are identified by their **email** address. The `username` is a
public display handle (used in emails), and `role` records whether the account
was onboarded as a client or a freelancer.

Features:
    - Email is the login field (`USERNAME_FIELD`) and is unique.
    - Automatic normalization of `email` (lowercase, trimmed) on save.
    - Display handle (`username`) auto-generated when none is given.
    - Role metadata used when notifying the user.
    - Custom manager (`CustomManager`) for email-based user creation.

Example:
    >>> from accounts.models import CustomUser
    >>> user = CustomUser.objects.create_user(
    ...     email="Test@Example.com", password="securepassword123"
    ... )
    >>> user.email
    'test@example.com'
"""

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _

from .constants import UserRole
from .managers import CustomManager


def default_username():
    return f"user-{uuid.uuid4().hex[:12]}"


class CustomUser(AbstractUser):
    """
    Marketplace account with email as the unique identifier.

    Attributes:
        username (str): Public display handle, unique, generated if omitted.
        email (str): Unique email address, the login field.
        role (str): One of `UserRole` (client, freelancer, admin).
        is_email_verified (bool): Whether the email address has been confirmed.
        USERNAME_FIELD (str): Set to "email" for authentication.
        REQUIRED_FIELDS (list): Empty, since email is the only required field.

    Manager:
        objects (CustomManager): Handles user and superuser creation.
    """

    username = models.CharField(
        max_length=150,
        unique=True,
        default=default_username,
        verbose_name=_("username"),
    )
    email = models.EmailField(max_length=254, unique=True, verbose_name=_("email"))
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CLIENT,
        verbose_name=_("role"),
    )
    is_email_verified = models.BooleanField(default=False)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = CustomManager()

    def save(self, *args, **kwargs):
        """
        Normalize the email address before saving.

        Args:
            *args: Positional arguments passed to the base `save`.
            **kwargs: Keyword arguments passed to the base `save`.
        """

        if self.email:
            self.email = self.email.strip().lower()

        super().save(*args, **kwargs)

    def __str__(self):
        return self.email or str(self.id)

    @property
    def display_name(self):
        """
        Return the name used to greet the user in emails.

        Falls back from the full name to the username.
        """
        parts = [self.first_name.strip(), self.last_name.strip()]
        full_name = " ".join(part for part in parts if part)
        return full_name or self.username

    class Meta:
        verbose_name = _("user")
        verbose_name_plural = _("users")
