"""
Enumerations shared by the accounts application.

`UserRole` mirrors the roles a marketplace account can be onboarded into.
Onboarding itself lives outside this service; the role is only read here
(for example, to personalise the password-changed email).
"""

from django.db import models


class UserRole(models.TextChoices):
    """
    Role of a marketplace account.

    Attributes:
        CLIENT (str): Buys services.
        FREELANCER (str): Sells services.
        ADMIN (str): Staff account moderating the marketplace.
    """

    CLIENT = "client", "Client"
    FREELANCER = "freelancer", "Freelancer"
    ADMIN = "admin", "Admin"
