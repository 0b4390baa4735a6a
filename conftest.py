"""
Shared pytest fixtures.

    - Throttle counters live in the cache, so it is cleared between tests.
    - Emails go to `django.core.mail.outbox` instead of an SMTP server.
"""

import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _isolated_settings(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.DEFAULT_FROM_EMAIL = "no-reply@example.com"
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.VERIFICATION = {
        "CODE_LENGTH": 6,
        "CODE_TTL_SECONDS": 600,
        "RESEND_COOLDOWN_SECONDS": 0,
        "SITE_NAME": "LFM Platform",
    }
    cache.clear()
    yield
    cache.clear()
