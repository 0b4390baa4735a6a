"""
Root URL configuration.

    - /admin/        → Django admin
    - /api/          → verification endpoints (OTP login, password change)
    - /api/schema/   → OpenAPI schema, /api/docs/ → Swagger UI
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path("api/", include("verification.urls")),
]
