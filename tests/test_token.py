"""AuthToken 및 토큰 검증 테스트."""

from datetime import datetime, timedelta

import pytest

from loopback_oauth.exceptions import OAuthResponseError, TokenTypeError
from loopback_oauth.token import (
    AuthToken,
    build_bearer_token,
    parse_expires_in,
    warn_if_expiring_soon,
)


class TestAuthToken:
    def test_is_expired(self):
        assert AuthToken("t", expires_at=datetime.now() - timedelta(seconds=1)).is_expired()
        assert not AuthToken("t", expires_at=datetime.now() + timedelta(hours=1)).is_expired()
        assert not AuthToken("t").is_expired()

    def test_expires_within(self):
        token = AuthToken("t", expires_at=datetime.now() + timedelta(hours=1))
        assert token.expires_within(timedelta(days=2))
        assert not token.expires_within(timedelta(minutes=1))
        assert not AuthToken("t").expires_within(timedelta(days=2))

    def test_dict_round_trip(self):
        token = AuthToken("t", expires_at=datetime(2030, 1, 1, 12, 0), token_type="bearer")

        restored = AuthToken.from_dict(token.to_dict())

        assert restored == token

    def test_repr_hides_token(self):
        token = AuthToken("secret-access-token-value")
        assert "secret-access-token-value" not in repr(token)


class TestBuildBearerToken:
    def test_expiry_computed_from_now(self):
        before = datetime.now()
        token = build_bearer_token("t", "Bearer", 7200)
        after = datetime.now()

        assert before + timedelta(seconds=7200) <= token.expires_at
        assert token.expires_at <= after + timedelta(seconds=7200)

    @pytest.mark.parametrize("token_type", ["bearer", "Bearer", "BEARER"])
    def test_bearer_case_insensitive(self, token_type):
        assert build_bearer_token("t", token_type, 60).access_token == "t"

    def test_rejects_other_types(self):
        with pytest.raises(TokenTypeError):
            build_bearer_token("t", "Basic", 60)

    @pytest.mark.parametrize("value", ["abc", "", None, "-5", "1.5"])
    def test_parse_expires_in_rejects(self, value):
        with pytest.raises(OAuthResponseError):
            parse_expires_in(value)

    @pytest.mark.parametrize("expires_in", [10**12, 10**20, "99999999999999999"])
    def test_out_of_range_expiry(self, expires_in):
        """표현할 수 없는 만료 시각은 OverflowError가 아닌 응답 에러."""
        with pytest.raises(OAuthResponseError) as exc_info:
            build_bearer_token("t", "bearer", expires_in)

        assert "Failed to parse expiry as integer" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OverflowError)

    def test_parse_expires_in_accepts_strings(self):
        assert parse_expires_in("3600") == 3600


class TestExpiryWarning:
    def test_warns_under_two_days(self, caplog):
        token = AuthToken("t", expires_at=datetime.now() + timedelta(days=1))

        with caplog.at_level("WARNING"):
            assert warn_if_expiring_soon(token) is True

        assert "Token retrieved expires in under two days" in caplog.text

    def test_silent_for_long_lived_token(self, caplog):
        token = AuthToken("t", expires_at=datetime.now() + timedelta(days=30))

        with caplog.at_level("WARNING"):
            assert warn_if_expiring_soon(token) is False

        assert caplog.text == ""
