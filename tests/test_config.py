"""OAuthConfig 테스트."""

import pytest

from loopback_oauth.config import MIN_TOKEN_VALIDITY, OAuthConfig
from loopback_oauth.exceptions import ConfigError


class TestOAuthConfig:
    def test_defaults(self):
        config = OAuthConfig(client_id="c", auth_url="https://auth.example.com/authorize")

        assert config.token_url is None
        assert config.extra_params is None
        assert config.auto_open_browser is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LOOPBACK_OAUTH_CLIENT_ID", "env-client")
        monkeypatch.setenv("LOOPBACK_OAUTH_AUTH_URL", "https://auth.example.com/authorize")
        monkeypatch.setenv("LOOPBACK_OAUTH_TOKEN_URL", "https://auth.example.com/token")

        config = OAuthConfig.from_env()

        assert config.client_id == "env-client"
        assert config.auth_url == "https://auth.example.com/authorize"
        assert config.token_url == "https://auth.example.com/token"

    def test_from_env_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("MYCLI_CLIENT_ID", "c")
        monkeypatch.setenv("MYCLI_AUTH_URL", "https://auth.example.com/authorize")
        monkeypatch.delenv("MYCLI_TOKEN_URL", raising=False)

        config = OAuthConfig.from_env(prefix="MYCLI_")

        assert config.client_id == "c"
        assert config.token_url is None

    def test_from_env_missing(self, monkeypatch):
        monkeypatch.delenv("LOOPBACK_OAUTH_CLIENT_ID", raising=False)
        monkeypatch.delenv("LOOPBACK_OAUTH_AUTH_URL", raising=False)

        with pytest.raises(ConfigError) as exc_info:
            OAuthConfig.from_env()

        assert "LOOPBACK_OAUTH_CLIENT_ID" in str(exc_info.value)
        assert "LOOPBACK_OAUTH_AUTH_URL" in str(exc_info.value)

    def test_min_token_validity(self):
        assert MIN_TOKEN_VALIDITY.days == 2
