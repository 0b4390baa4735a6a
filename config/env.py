"""
Environment configuration via pydantic-settings.

Every deployment-specific value is read from environment variables (and an
optional ``.env`` file) into typed groups. Invalid values raise
`pydantic.ValidationError` when settings are imported, so a typo such as
``DB_TIMEOUT=five`` stops the process instead of falling back to a default.

Usage:
    >>> from config.env import AppEnv
    >>> env = AppEnv()
    >>> env.database.timeout
    5
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, NonNegativeInt, PositiveInt, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseEnv(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DB_", env_file=".env", extra="ignore")

    engine: Literal["sqlite", "postgres"] = "sqlite"
    name: Optional[str] = None
    user: str = "postgres"
    password: str = ""
    host: str = "localhost"
    port: PositiveInt = 5432
    # Seconds; SQLite lock wait, PostgreSQL connect and statement timeout.
    timeout: PositiveInt = 5


class EmailEnv(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="EMAIL_", env_file=".env", extra="ignore"
    )

    backend: str = "django.core.mail.backends.smtp.EmailBackend"
    host: str = "localhost"
    port: PositiveInt = 465
    host_user: str = ""
    host_password: str = ""
    use_ssl: Optional[bool] = None
    use_tls: bool = False
    timeout: PositiveInt = 10
    default_from_email: str = Field(default="", validation_alias="DEFAULT_FROM_EMAIL")

    @model_validator(mode="after")
    def _resolve_transport(self) -> "EmailEnv":
        # Implicit TLS on 465 unless told otherwise; never both SSL and STARTTLS.
        if self.use_ssl is None:
            self.use_ssl = self.port == 465
        if self.use_ssl:
            self.use_tls = False
        if not self.default_from_email:
            sender = self.host_user or "no-reply@localhost"
            self.default_from_email = f'"LFM Platform" <{sender}>'
        return self


class VerificationEnv(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VERIFICATION_", env_file=".env", extra="ignore"
    )

    code_ttl_seconds: PositiveInt = 600
    resend_cooldown_seconds: NonNegativeInt = 0
    site_name: str = Field(default="LFM Platform", validation_alias="SITE_NAME")
    otp_throttle_rate: str = Field(default="20/hour", validation_alias="OTP_THROTTLE_RATE")


class LoggingEnv(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: Optional[str] = None
    log_format: Optional[Literal["console", "json"]] = None


class AppEnv(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DJANGO_", env_file=".env", extra="ignore"
    )

    secret_key: str = "django-insecure-dev-only-change-me"
    debug: bool = True
    # Comma-separated host names.
    allowed_hosts: str = "localhost,127.0.0.1"

    database: Optional[DatabaseEnv] = None
    email: Optional[EmailEnv] = None
    verification: Optional[VerificationEnv] = None
    logging: Optional[LoggingEnv] = None

    @model_validator(mode="after")
    def _populate_groups(self) -> "AppEnv":
        if self.database is None:
            self.database = DatabaseEnv()
        if self.email is None:
            self.email = EmailEnv()
        if self.verification is None:
            self.verification = VerificationEnv()
        if self.logging is None:
            self.logging = LoggingEnv()
        return self

    @property
    def allowed_hosts_list(self) -> list[str]:
        return [host.strip() for host in self.allowed_hosts.split(",") if host.strip()]

    @property
    def log_level(self) -> str:
        return (self.logging.log_level or ("DEBUG" if self.debug else "INFO")).upper()

    @property
    def log_format(self) -> str:
        return self.logging.log_format or ("console" if self.debug else "json")
