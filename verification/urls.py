"""
URL routing for the verification endpoints.

Registered routes (no trailing slash, matching the public contract):
    - /otp/send, /otp/verify            → OTPViewSet
    - /password/change, /password/verify,
      /password/apply                    → PasswordViewSet
"""

from rest_framework.routers import DefaultRouter

from .views import OTPViewSet, PasswordViewSet

router = DefaultRouter(trailing_slash=False)

# `basename` is required because the viewsets have no queryset.
router.register("otp", OTPViewSet, basename="otp")
router.register("password", PasswordViewSet, basename="password")

urlpatterns = router.urls
