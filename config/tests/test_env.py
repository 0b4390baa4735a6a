"""
Tests for `config.env`.

Each test builds the settings groups from a controlled environment
(`monkeypatch.setenv`) with the `.env` file disabled, and checks both the
parsed values and that bad values are rejected instead of defaulted.
"""

import pytest
from pydantic import ValidationError

from config.env import AppEnv, DatabaseEnv, EmailEnv, VerificationEnv


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    for name in (
        "DB_TIMEOUT",
        "DB_ENGINE",
        "EMAIL_PORT",
        "EMAIL_USE_SSL",
        "EMAIL_USE_TLS",
        "EMAIL_HOST_USER",
        "DEFAULT_FROM_EMAIL",
        "VERIFICATION_CODE_TTL_SECONDS",
        "VERIFICATION_RESEND_COOLDOWN_SECONDS",
        "DJANGO_DEBUG",
        "DJANGO_ALLOWED_HOSTS",
        "LOG_FORMAT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        """
        Test the development defaults when nothing is configured.
        """

        env = AppEnv(_env_file=None)

        assert env.debug is True
        assert env.allowed_hosts_list == ["localhost", "127.0.0.1"]
        assert env.database.engine == "sqlite"
        assert env.database.timeout == 5
        assert env.email.port == 465
        assert env.email.use_ssl is True
        assert env.email.use_tls is False
        assert env.verification.code_ttl_seconds == 600
        assert env.verification.resend_cooldown_seconds == 0
        assert env.log_format == "console"

    def test_production_logging_defaults(self, monkeypatch):
        monkeypatch.setenv("DJANGO_DEBUG", "false")

        env = AppEnv(_env_file=None)

        assert env.log_format == "json"
        assert env.log_level == "INFO"


class TestParsing:
    def test_values_are_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("DB_TIMEOUT", "7")
        monkeypatch.setenv("EMAIL_PORT", "587")
        monkeypatch.setenv("EMAIL_USE_TLS", "true")
        monkeypatch.setenv("DJANGO_ALLOWED_HOSTS", "api.example.com, admin.example.com")

        env = AppEnv(_env_file=None)

        assert env.database.timeout == 7
        assert env.email.port == 587
        assert env.email.use_ssl is False
        assert env.email.use_tls is True
        assert env.allowed_hosts_list == ["api.example.com", "admin.example.com"]

    def test_explicit_ssl_wins_over_tls(self, monkeypatch):
        monkeypatch.setenv("EMAIL_PORT", "2525")
        monkeypatch.setenv("EMAIL_USE_SSL", "1")
        monkeypatch.setenv("EMAIL_USE_TLS", "1")

        email = EmailEnv(_env_file=None)

        assert email.use_ssl is True
        assert email.use_tls is False

    def test_default_from_email_uses_host_user(self, monkeypatch):
        monkeypatch.setenv("EMAIL_HOST_USER", "mailer@example.com")
        assert EmailEnv(_env_file=None).default_from_email == (
            '"LFM Platform" <mailer@example.com>'
        )


class TestInvalidValues:
    @pytest.mark.parametrize(
        "settings_class, name, value",
        [
            (DatabaseEnv, "DB_TIMEOUT", "five"),
            (DatabaseEnv, "DB_TIMEOUT", "0"),
            (DatabaseEnv, "DB_ENGINE", "mysql"),
            (EmailEnv, "EMAIL_PORT", "25x"),
            (EmailEnv, "EMAIL_USE_SSL", "maybe"),
            (VerificationEnv, "VERIFICATION_CODE_TTL_SECONDS", "-1"),
            (VerificationEnv, "VERIFICATION_RESEND_COOLDOWN_SECONDS", "soon"),
        ],
    )
    def test_invalid_values_are_rejected(self, monkeypatch, settings_class, name, value):
        """
        Test that a malformed value raises instead of silently becoming the
        default.
        """

        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            settings_class(_env_file=None)

    def test_invalid_group_fails_the_whole_configuration(self, monkeypatch):
        monkeypatch.setenv("EMAIL_PORT", "25x")
        with pytest.raises(ValidationError):
            AppEnv(_env_file=None)
