"""
Django settings for the marketplace backend.

Deployment-specific values come from `config.env.AppEnv` (environment
variables or a `.env` file), which validates them at import time.
"""

from pathlib import Path

from .env import AppEnv
from .logging import configure_structlog

BASE_DIR = Path(__file__).resolve().parent.parent


env = AppEnv()

SECRET_KEY = env.secret_key
DEBUG = env.debug
ALLOWED_HOSTS = env.allowed_hosts_list

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "drf_spectacular",
    "accounts",
    "verification",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

# Database
# Storage calls are bounded: SQLite waits at most DB_TIMEOUT seconds for a
# lock, PostgreSQL gets a connect timeout and a statement timeout.

DB_TIMEOUT = env.database.timeout

if env.database.engine == "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": env.database.name or "marketplace",
            "USER": env.database.user,
            "PASSWORD": env.database.password,
            "HOST": env.database.host,
            "PORT": env.database.port,
            "OPTIONS": {
                "connect_timeout": DB_TIMEOUT,
                "options": f"-c statement_timeout={DB_TIMEOUT * 1000}",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / (env.database.name or "db.sqlite3"),
            "OPTIONS": {"timeout": DB_TIMEOUT},
            # On-disk test database so threads in the race tests share it.
            "TEST": {"NAME": BASE_DIR / "test_db.sqlite3"},
        }
    }

AUTH_USER_MODEL = "accounts.CustomUser"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Email
# SMTP delivery; EMAIL_TIMEOUT bounds every send so a slow mail server cannot
# hold a request open.

EMAIL_BACKEND = env.email.backend
EMAIL_HOST = env.email.host
EMAIL_PORT = env.email.port
EMAIL_HOST_USER = env.email.host_user
EMAIL_HOST_PASSWORD = env.email.host_password
EMAIL_USE_SSL = env.email.use_ssl
EMAIL_USE_TLS = env.email.use_tls
EMAIL_TIMEOUT = env.email.timeout
DEFAULT_FROM_EMAIL = env.email.default_from_email

# Verification codes

VERIFICATION = {
    "CODE_LENGTH": 6,
    "CODE_TTL_SECONDS": env.verification.code_ttl_seconds,
    # 0 disables the cooldown: a new request always supersedes the old code.
    "RESEND_COOLDOWN_SECONDS": env.verification.resend_cooldown_seconds,
    "SITE_NAME": env.verification.site_name,
}

# REST framework

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_RATES": {
        "otp": env.verification.otp_throttle_rate,
    },
}

SPECTACULAR_SETTINGS = {
    "TITLE": "LFM Platform API",
    "DESCRIPTION": "Email OTP login and confirmed password changes.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# Logging

LOG_LEVEL = env.log_level
LOG_FORMAT = env.log_format

configure_structlog(LOG_FORMAT)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"plain": {"format": "%(message)s"}},
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django.db.backends": {"level": "WARNING"},
    },
}
