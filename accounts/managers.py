"""
Custom user manager for email-based accounts.

Example:
    >>> from accounts.models import CustomUser
    >>> user = CustomUser.objects.create_user(
    ...     email="test@example.com", password="securepassword123"
    ... )
    >>> user.email
    'test@example.com'
"""

from django.contrib.auth.models import BaseUserManager
from django.utils.translation import gettext_lazy as _


class CustomManager(BaseUserManager):
    """
    Manager creating users identified by their email address.

    Methods:
        create_user(email, password=None, **extra_fields):
            Creates and saves a regular user.

        create_superuser(email, password, **extra_fields):
            Creates and saves a superuser with `is_staff` and `is_superuser`.
    """

    def create_user(self, email=None, password=None, **extra_fields):
        """
        Create and return a new user.

        Args:
            email (str): The user's email address.
            password (str, optional): The raw password. If None, the user
                gets an unusable password.
            **extra_fields: Additional model fields (username, role, ...).

        Raises:
            ValueError: If `email` is missing.

        Returns:
            CustomUser: The created user instance.
        """

        if not email:
            raise ValueError(_("Email must be set"))

        user = self.model(email=self.normalize_email(email), **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email=None, password=None, **extra_fields):
        """
        Create and return a new superuser.

        Raises:
            ValueError: If `is_staff` or `is_superuser` is not True.

        Returns:
            CustomUser: The created superuser instance.
        """

        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("role", "admin")

        if extra_fields.get("is_staff") is not True:
            raise ValueError(_("Superuser must have is_staff=True."))
        if extra_fields.get("is_superuser") is not True:
            raise ValueError(_("Superuser must have is_superuser=True."))

        return self.create_user(email, password, **extra_fields)
