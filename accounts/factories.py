"""
User factory for generating test users.

This module uses `factory_boy` to provide a `UserFactory` class that creates
`CustomUser` rows with realistic fake data and a properly hashed password.

Example:
    >>> user = UserFactory()
    >>> user.check_password("defaultpassword")
    True

    >>> user = UserFactory(password="mypassword123")
    >>> user.check_password("mypassword123")
    True
"""

import factory
from django.contrib.auth import get_user_model

from .constants import UserRole

User = get_user_model()


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating `CustomUser` instances.

    Meta:
        model (User): The active user model.
        skip_postgeneration_save (bool): Prevents double-saving the object
            when the password hook modifies it.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"user{n}")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = UserRole.CLIENT
    is_email_verified = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        """
        Hash and store the password.

        Uses the value passed as `password=` or `"defaultpassword"`.
        """

        if not create:
            return

        self.set_password(extracted or "defaultpassword")
        self.save()
