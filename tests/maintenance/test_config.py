"""Tests for configuration loading and validation."""

import os
from unittest.mock import patch

import pytest

from pg_maintenance.core.config import Settings, validate_settings
from pg_maintenance.core.errors import ConfigurationError


class TestSettingsLoading:
    """Tests for Settings defaults and DB_* environment variables."""

    def test_defaults(self):
        settings = Settings()

        assert settings.host == "localhost"
        assert settings.port == 5432
        assert settings.name == "postgres"
        assert settings.username == "postgres"
        assert settings.password is None
        assert settings.sslmode == "require"
        assert settings.connect_timeout == 10

    def test_reads_prefixed_environment(self):
        with patch.dict(
            os.environ,
            {
                "DB_HOST": "pg.example.com",
                "DB_PORT": "6432",
                "DB_NAME": "warehouse",
                "DB_USERNAME": "janitor",
                "DB_PASSWORD": "from-env",
                "DB_SSLMODE": "verify-full",
            },
        ):
            settings = Settings()

        assert settings.host == "pg.example.com"
        assert settings.port == 6432
        assert settings.name == "warehouse"
        assert settings.username == "janitor"
        assert settings.password == "from-env"
        assert settings.sslmode == "verify-full"

    def test_init_values_override_environment(self):
        with patch.dict(os.environ, {"DB_HOST": "env-host", "DB_PASSWORD": "env-pass"}):
            settings = Settings(host="cli-host")

        assert settings.host == "cli-host"
        assert settings.password == "env-pass"


class TestValidateSettings:
    """Tests for validate_settings function."""

    def test_missing_password(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(Settings())

        assert "--password or DB_PASSWORD is required" in str(exc_info.value)
        assert exc_info.value.context == "Configuration error"

    def test_whitespace_only_password(self):
        with pytest.raises(ConfigurationError):
            validate_settings(Settings(password="   "))

    @pytest.mark.parametrize("mode", ["disable", "allow", "prefer", "bogus"])
    def test_plaintext_capable_sslmodes_rejected(self, mode):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(Settings(password="x", sslmode=mode))

        assert "Unsupported sslmode" in str(exc_info.value)

    @pytest.mark.parametrize("mode", ["require", "verify-ca", "verify-full"])
    def test_tls_sslmodes_accepted(self, mode):
        validate_settings(Settings(password="x", sslmode=mode))

    def test_empty_host(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(Settings(password="x", host=""))

        assert "--host must not be empty" in str(exc_info.value)

    def test_port_out_of_range(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(Settings(password="x", port=70000))

        assert "Invalid port" in str(exc_info.value)

    def test_negative_connect_timeout(self):
        with pytest.raises(ConfigurationError):
            validate_settings(Settings(password="x", connect_timeout=-1))

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_settings(Settings())

    def test_valid_configuration(self, settings):
        # Should not raise
        validate_settings(settings)
