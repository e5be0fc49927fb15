"""Tests for Configuration Manager."""

import os
from unittest.mock import patch

import pytest

from mindstore.core.config import (
    DEFAULT_API_URL,
    Config,
    ConfigurationError,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def clean_config():
    reset_config()
    yield
    reset_config()


class TestConfigDefaults:
    """Test Config default values."""

    def test_config_has_correct_defaults(self):
        """Config should have sensible defaults for every field."""
        config = Config()

        assert config.api_url == DEFAULT_API_URL
        assert config.user_id is None
        assert config.page_size == 10
        assert config.poll_interval == 5.0
        assert config.request_timeout == 30.0
        assert config.log_level == "INFO"

    def test_api_base_strips_api_prefix(self):
        config = Config(api_url="https://mindstore.example/api/")

        assert config.api_url == "https://mindstore.example/api"
        assert config.api_base == "https://mindstore.example"

    def test_api_base_without_prefix(self):
        assert Config(api_url="http://h:3001").api_base == "http://h:3001"


class TestConfigValidation:
    """Test Config validation."""

    def test_config_validates_log_level(self):
        """Config should reject invalid log levels."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(log_level="INVALID")

        assert "Invalid LOG_LEVEL" in str(exc_info.value)

    def test_config_normalizes_log_level_case(self):
        config = Config(log_level="debug")
        assert config.log_level == "DEBUG"

    def test_config_rejects_non_http_url(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_url="ftp://files.example/api")

        assert "MINDSTORE_API_URL" in str(exc_info.value)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("page_size", 0),
            ("poll_interval", 0),
            ("poll_interval", -1.0),
            ("request_timeout", 0),
        ],
    )
    def test_config_rejects_out_of_range_numbers(self, field, value):
        with pytest.raises(ConfigurationError):
            Config(**{field: value})

    def test_blank_user_id_is_none(self):
        assert Config(user_id="   ").user_id is None


class TestLoadConfig:
    """Test loading from environment variables."""

    def test_load_config_from_env(self):
        env = {
            "MINDSTORE_API_URL": "https://mindstore.example/api",
            "MINDSTORE_USER_ID": "user-42",
            "MINDSTORE_PAGE_SIZE": "25",
            "MINDSTORE_POLL_INTERVAL": "2.5",
            "MINDSTORE_REQUEST_TIMEOUT": "12",
            "LOG_LEVEL": "warning",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config()

        assert config.api_url == "https://mindstore.example/api"
        assert config.user_id == "user-42"
        assert config.page_size == 25
        assert config.poll_interval == 2.5
        assert config.request_timeout == 12.0
        assert config.log_level == "WARNING"

    def test_load_config_defaults_with_empty_env(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config == Config()

    def test_load_config_rejects_non_numeric_page_size(self):
        with patch.dict(os.environ, {"MINDSTORE_PAGE_SIZE": "ten"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_config()

        assert "MINDSTORE_PAGE_SIZE" in str(exc_info.value)

    def test_load_config_rejects_non_numeric_interval(self):
        with patch.dict(os.environ, {"MINDSTORE_POLL_INTERVAL": "soon"}, clear=True):
            with pytest.raises(ConfigurationError):
                load_config()


class TestGetConfig:
    """Test the cached global instance."""

    def test_get_config_caches(self):
        with patch.dict(os.environ, {"MINDSTORE_USER_ID": "a"}, clear=True):
            first = get_config()
        with patch.dict(os.environ, {"MINDSTORE_USER_ID": "b"}, clear=True):
            second = get_config()

        assert first is second
        assert second.user_id == "a"

    def test_reset_config_forces_reload(self):
        with patch.dict(os.environ, {"MINDSTORE_USER_ID": "a"}, clear=True):
            get_config()
        reset_config()
        with patch.dict(os.environ, {"MINDSTORE_USER_ID": "b"}, clear=True):
            assert get_config().user_id == "b"
