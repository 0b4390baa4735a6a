"""
Read-only admin for verification codes.

Codes are written only by the verification services, so the admin can list
and inspect rows but never edit them. The code hash and staged payload are
not shown.
"""

from django.contrib import admin

from .models import VerificationCode


@admin.register(VerificationCode)
class VerificationCodeAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "subject",
        "purpose",
        "status",
        "issued_at",
        "expires_at",
        "consumed_at",
        "applied_at",
    )
    list_filter = ("purpose", "status")
    search_fields = ("subject",)
    ordering = ("-issued_at",)
    fields = (
        "subject",
        "purpose",
        "status",
        "issued_at",
        "expires_at",
        "consumed_at",
        "applied_at",
        "version",
    )
    readonly_fields = fields

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
