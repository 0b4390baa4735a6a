"""
Unit tests for `CustomManager`.

Tested methods:
    - create_user
    - create_superuser
"""

import pytest

from accounts.constants import UserRole
from accounts.models import CustomUser


@pytest.mark.django_db
class TestCustomManager:
    def test_create_user(self):
        """
        Test creating a user with an email and password.

        Ensures:
            - The password is hashed.
            - `is_staff` and `is_superuser` are False by default.
        """

        user = CustomUser.objects.create_user(email="test@example.com", password="pw1")
        assert user.check_password("pw1")
        assert user.is_staff is False
        assert user.is_superuser is False

    def test_create_user_without_password_is_unusable(self):
        user = CustomUser.objects.create_user(email="nopw@example.com")
        assert user.has_usable_password() is False

    def test_create_user_without_email_raises(self):
        """
        Test that creating a user without an email raises a ValueError.
        """

        with pytest.raises(ValueError, match="Email must be set"):
            CustomUser.objects.create_user(password="pw1")

    def test_create_superuser(self):
        """
        Test that a superuser gets staff and superuser flags and the admin role.
        """

        admin = CustomUser.objects.create_superuser(
            email="admin@example.com", password="adminpass"
        )
        assert admin.is_staff is True
        assert admin.is_superuser is True
        assert admin.role == UserRole.ADMIN

    def test_create_superuser_requires_flags(self):
        with pytest.raises(ValueError):
            CustomUser.objects.create_superuser(
                email="admin@example.com", password="pw", is_staff=False
            )
