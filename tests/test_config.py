"""Tests for environment-driven configuration."""

import pytest

from intervue.config import get_config

REQUIRED = {
    "SUPABASE_URL": "https://db.example.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "svc-key",
}


@pytest.fixture
def clean_env(monkeypatch):
    for name in ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "APP_URL", "API_TOKEN",
                 "GOOGLE_CLOUD_PROJECT", "INTERVUE_LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestGetConfig:
    def test_missing_store_url(self, clean_env) -> None:
        clean_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "svc-key")
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            get_config()

    def test_missing_store_key(self, clean_env) -> None:
        clean_env.setenv("SUPABASE_URL", "https://db.example.supabase.co")
        with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY"):
            get_config()

    def test_defaults(self, clean_env) -> None:
        for name, value in REQUIRED.items():
            clean_env.setenv(name, value)
        config = get_config()

        assert config.supabase_url == "https://db.example.supabase.co"
        assert config.app_url == "http://localhost:3000"
        assert config.pause_threshold_seconds == 1.5
        assert config.session_time_limit_seconds == 45 * 60
        assert config.api_token is None
        assert not config.skill_extraction_enabled

    def test_overrides(self, clean_env) -> None:
        for name, value in REQUIRED.items():
            clean_env.setenv(name, value)
        clean_env.setenv("APP_URL", "https://intervue.example.com")
        clean_env.setenv("GOOGLE_CLOUD_PROJECT", "proj")
        clean_env.setenv("INTERVUE_LOG_LEVEL", "DEBUG")
        config = get_config()

        assert config.app_url == "https://intervue.example.com"
        assert config.skill_extraction_enabled
        assert config.log_level == "DEBUG"
