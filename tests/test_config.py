"""
Tests for client settings.
"""

import pytest

from baasclient import ClientSettings, ConfigError, ErrorKind


class TestDefaults:

    def test_defaults(self):
        settings = ClientSettings()

        assert settings.timeout_seconds == 10.0
        assert settings.retry.max_attempts == 3
        assert settings.retry.delay_seconds == 1.0
        assert settings.crash_reporting.tokens_per_minute == 5
        assert settings.crash_reporting.max_reports_per_session == 20
        assert settings.crash_reporting.breadcrumb_capacity == 50
        assert settings.crash_reporting.max_custom_keys == 10
        assert settings.session_file is None


class TestValidate:

    def test_missing_api_key(self):
        with pytest.raises(ConfigError) as exc_info:
            ClientSettings(api_key="  ", hosts=["https://a"]).validate()

        assert exc_info.value.setting_name == "api_key"
        assert exc_info.value.kind is ErrorKind.CONFIG

    def test_missing_hosts(self):
        with pytest.raises(ConfigError) as exc_info:
            ClientSettings(api_key="k").validate()

        assert exc_info.value.setting_name == "hosts"

    def test_valid(self):
        ClientSettings(api_key="k", hosts=["https://a"]).validate()


class TestFromMapping:

    def test_comma_separated_hosts(self):
        settings = ClientSettings.from_mapping({
            "api_key": "k",
            "hosts": "https://eu.example.com, https://us.example.com,",
            "max_retry_attempts": "5",
            "retry_delay_seconds": "0.5",
            "timeout_seconds": 3,
        })

        assert settings.hosts == ["https://eu.example.com", "https://us.example.com"]
        assert settings.retry.max_attempts == 5
        assert settings.retry.delay_seconds == 0.5
        assert settings.timeout_seconds == 3.0

    def test_list_hosts_and_defaults(self):
        settings = ClientSettings.from_mapping({"api_key": "k", "hosts": ["https://a"], "unknown": 1})

        assert settings.hosts == ["https://a"]
        assert settings.retry.max_attempts == 3
        assert settings.timeout_seconds == 10.0

    def test_empty_mapping(self):
        settings = ClientSettings.from_mapping({})
        assert settings.api_key == ""
        assert settings.hosts == []
