"""Tests for settings validation and the admin credential check."""

import warnings

import pytest

from keygate.common.config import KeygateSettings
from keygate.common.exceptions import AuthError
from keygate.common.security import require_admin_key


class TestSettings:
    def test_defaults(self):
        settings = KeygateSettings()
        assert settings.key_length == 16
        assert settings.key_max_attempts == 5
        assert settings.default_page_size == 10
        assert settings.port == 3000

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("KEYGATE_BACKEND", "sql")
        monkeypatch.setenv("KEYGATE_PORT", "9999")
        settings = KeygateSettings()
        assert settings.backend == "sql"
        assert settings.port == 9999

    def test_insecure_default_rejected_in_production(self):
        settings = KeygateSettings(environment="production", api_key="insecure-admin-key-change-me")
        with pytest.raises(RuntimeError, match="KEYGATE_API_KEY"):
            settings.validate_for_production()

    def test_insecure_default_warns_in_development(self):
        settings = KeygateSettings(environment="development", api_key="insecure-admin-key-change-me")
        with pytest.warns(UserWarning):
            settings.validate_for_production()

    def test_custom_key_accepted_in_production(self):
        KeygateSettings(environment="production", api_key="s3cret").validate_for_production()

    def test_custom_key_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            KeygateSettings(api_key="s3cret").validate_for_production()


class TestRequireAdminKey:
    def test_matching_key(self):
        require_admin_key("s3cret", KeygateSettings(api_key="s3cret"))

    @pytest.mark.parametrize("provided", [None, "", "wrong", "s3cret "])
    def test_rejected(self, provided):
        with pytest.raises(AuthError) as exc_info:
            require_admin_key(provided, KeygateSettings(api_key="s3cret"))
        assert exc_info.value.status_code == 401
