"""
Tests for configuration management
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from flamex_pos.config import Settings, get_config, reset_config


class TestSettings:
    """Test Settings model"""

    def test_settings_from_environment(self):
        settings = Settings()

        assert settings.database_url == "sqlite:///:memory:"
        assert settings.environment == "test"
        assert settings.default_cashier_name == "Test Cashier"
        assert settings.bcrypt_rounds == 4

    def test_settings_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.timezone == "Asia/Karachi"
        assert settings.currency == "PKR"
        assert settings.default_page_size == 50
        assert settings.default_report_days == 30
        assert settings.critical_business_keys == [
            "business_name",
            "business_address",
            "business_phone",
        ]

    def test_log_level_is_normalised(self):
        assert Settings(log_level="warning").log_level == "WARNING"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(environment="qa")

    @pytest.mark.parametrize("field, value", [("bcrypt_rounds", 3), ("default_page_size", 0)])
    def test_numeric_bounds(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestGetConfig:
    """Test the cached settings accessor"""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reset_config_rereads_environment(self):
        assert get_config().default_cashier_name == "Test Cashier"

        with patch.dict(os.environ, {"DEFAULT_CASHIER_NAME": "Night Shift"}):
            assert get_config().default_cashier_name == "Test Cashier"
            reset_config()
            assert get_config().default_cashier_name == "Night Shift"
