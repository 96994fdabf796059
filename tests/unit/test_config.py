"""
Unit tests for Configuration module.
"""

import pytest
from pydantic import ValidationError

from app.core.config import (
    ConfigValidator,
    EnvironmentEnum,
    Settings,
    get_config_summary,
    settings,
)


class TestSettings:
    """Test cases for Settings configuration."""

    def test_storage_and_listing_defaults(self):
        test_settings = Settings()

        assert test_settings.default_disk == "public"
        assert test_settings.max_upload_size == 2 * 1024 * 1024
        assert test_settings.default_page_size == 10
        assert test_settings.max_page_size == 100
        assert "image/png" in test_settings.allowed_image_mime_types

    def test_environment_shortcuts(self):
        assert Settings(environment="dev").environment == EnvironmentEnum.development
        assert Settings(environment="PROD").environment == EnvironmentEnum.production
        assert Settings(environment="testing").is_testing is True

    def test_upload_size_bounds(self):
        with pytest.raises(ValidationError):
            Settings(max_upload_size=0)
        with pytest.raises(ValidationError):
            Settings(max_upload_size=101 * 1024 * 1024)

    def test_page_size_bounds(self):
        with pytest.raises(ValidationError):
            Settings(default_page_size=0)

    def test_allowed_origins_list(self):
        test_settings = Settings(allowed_origins="http://a.test, http://b.test,")

        assert test_settings.allowed_origins_list == ["http://a.test", "http://b.test"]


class TestConfigValidator:
    def test_current_settings_are_valid(self):
        ConfigValidator.validate_required_settings()

    def test_summary(self):
        summary = get_config_summary()

        assert summary["app_name"] == settings.app_name
        assert summary["features"]["default_disk"] == settings.default_disk
