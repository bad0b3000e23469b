"""Test custom authentication exceptions."""
import pytest

from loopback_oauth.exceptions import (
    BindError,
    ClientAuthError,
    ConfigError,
    FlowTimeoutError,
    InternalFlowError,
    NoAvailablePortError,
    OAuthError,
    OAuthResponseError,
    RngInitError,
    StateMismatchError,
    TokenExchangeError,
    TokenTypeError,
    format_chain,
)


class TestAuthExceptions:
    """인증 예외 클래스 테스트."""

    def test_client_auth_error_with_provider(self):
        err = ClientAuthError("Test", provider="example")
        assert err.provider == "example"
        assert "Test" in str(err)

    def test_exception_hierarchy(self):
        """모든 사용자 대상 예외는 ClientAuthError 상속."""
        for cls in (
            ConfigError,
            RngInitError,
            BindError,
            NoAvailablePortError,
            OAuthError,
            OAuthResponseError,
            StateMismatchError,
            TokenTypeError,
            TokenExchangeError,
            FlowTimeoutError,
        ):
            assert issubclass(cls, ClientAuthError)

        assert issubclass(NoAvailablePortError, BindError)

    def test_internal_error_is_not_recoverable_auth_error(self):
        """내부 불변식 위반은 ClientAuthError로 잡히지 않음."""
        assert not issubclass(InternalFlowError, ClientAuthError)
        assert issubclass(InternalFlowError, RuntimeError)

    def test_http_status(self):
        assert OAuthResponseError("missing").status == 400
        assert StateMismatchError("mismatch").status == 500
        assert TokenTypeError("basic").status == 500

    def test_oauth_error_with_error_code(self):
        err = OAuthError("OAuth failed", error_code="access_denied")
        assert err.error_code == "access_denied"

    def test_no_available_port_names_every_port(self):
        err = NoAvailablePortError([12731, 32492, 56909])

        assert err.ports == (12731, 32492, 56909)
        assert "12731" in str(err)
        assert "32492" in str(err)
        assert "56909" in str(err)

    def test_token_exchange_status_code(self):
        err = TokenExchangeError("failed", status_code=401)
        assert err.status_code == 401


class TestFormatChain:
    def test_single_error(self):
        assert format_chain(StateMismatchError("Mismatched")) == "Error: Mismatched"

    def test_chained_errors(self):
        try:
            try:
                raise ValueError("bad json")
            except ValueError as e:
                raise TokenExchangeError("Failed to parse token response") from e
        except TokenExchangeError as e:
            outer = e

        assert format_chain(outer) == (
            "Error: Failed to parse token response\n"
            "Caused by: bad json"
        )

    def test_three_levels(self):
        root = OSError("refused")
        middle = TokenExchangeError("Sending code failed")
        middle.__cause__ = root
        top = TokenExchangeError("Failed to convert oauth2 code into a token")
        top.__cause__ = middle

        lines = format_chain(top).splitlines()

        assert lines == [
            "Error: Failed to convert oauth2 code into a token",
            "Caused by: Sending code failed",
            "Caused by: refused",
        ]
