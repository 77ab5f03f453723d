"""Tests for application settings validation."""

import pytest
from pydantic import ValidationError

from clientdesk.core.config import Settings

SECURE_SECRET = "x" * 32


class TestSecretValidation:
    def test_default_secret_allowed_in_debug(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")

        settings = Settings(JWT_SECRET_KEY="dev-secret-key-change-in-prod")

        assert settings.JWT_SECRET_KEY == "dev-secret-key-change-in-prod"

    def test_default_secret_rejected_outside_debug(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "false")

        with pytest.raises(ValidationError, match="insecure default"):
            Settings(JWT_SECRET_KEY="changeme")

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            Settings(JWT_SECRET_KEY="too-short")

    def test_blank_secret_rejected(self):
        with pytest.raises(ValidationError, match="must be set"):
            Settings(JWT_SECRET_KEY="   ")

    def test_long_secret_accepted(self):
        assert Settings(JWT_SECRET_KEY=SECURE_SECRET).JWT_SECRET_KEY == SECURE_SECRET


class TestLimits:
    def test_login_defaults(self):
        settings = Settings(JWT_SECRET_KEY=SECURE_SECRET)

        assert settings.LOGIN_MAX_ATTEMPTS == 5
        assert settings.LOGIN_ATTEMPT_WINDOW_MINUTES == 30
        assert settings.DEFAULT_PAGE_SIZE == 10

    @pytest.mark.parametrize("field", ["LOGIN_MAX_ATTEMPTS", "LOGIN_ATTEMPT_WINDOW_MINUTES", "DEFAULT_PAGE_SIZE"])
    def test_non_positive_rejected(self, field):
        with pytest.raises(ValidationError, match="positive integer"):
            Settings(JWT_SECRET_KEY=SECURE_SECRET, **{field: 0})

    def test_limits_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOGIN_MAX_ATTEMPTS", "3")

        assert Settings(JWT_SECRET_KEY=SECURE_SECRET).LOGIN_MAX_ATTEMPTS == 3


class TestLogLevel:
    def test_normalized_to_upper_case(self):
        assert Settings(JWT_SECRET_KEY=SECURE_SECRET, LOG_LEVEL="warning").LOG_LEVEL == "WARNING"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError, match="Invalid LOG_LEVEL"):
            Settings(JWT_SECRET_KEY=SECURE_SECRET, LOG_LEVEL="LOUD")


def test_database_url_uses_asyncpg():
    settings = Settings(
        JWT_SECRET_KEY=SECURE_SECRET,
        POSTGRES_HOST="db",
        POSTGRES_USER="u",
        POSTGRES_PASSWORD="p",
        POSTGRES_DB="d",
    )

    assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/d"
