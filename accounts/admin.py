"""
Admin configuration for marketplace accounts.

Extends Django's built-in `UserAdmin` for the email-based `CustomUser`.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    """
    Admin for `CustomUser`.

    Key customizations:
        - `list_display` shows email, handle and role.
        - `fieldsets` group login, profile, role and permission fields.
        - `ordering` lists the newest accounts first.
    """

    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    list_display = (
        "id",
        "email",
        "username",
        "role",
        "is_email_verified",
        "is_staff",
        "date_joined",
    )
    list_display_links = ("id", "email")
    search_fields = ("email", "username", "first_name", "last_name")
    list_filter = ("role", "is_staff", "is_active", "is_email_verified")

    fieldsets = (
        (None, {"fields": ("email", "username", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "role")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Verification", {"fields": ("is_email_verified",)}),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "username", "role", "password1", "password2"),
            },
        ),
    )
    readonly_fields = ("last_login", "date_joined")
    ordering = ("-date_joined",)
