"""Loopback OAuth

브라우저만 있는 사용자를 대신해 CLI가 OAuth2 access token을 얻습니다.
로컬 HTTP 서버가 제공자의 redirect를 받아 호출 스레드로 토큰을 넘깁니다.

Example:
    from loopback_oauth import run_code_grant_pkce

    token = run_code_grant_pkce(
        "your-client-id",
        "https://auth.example.com/authorize",
        "https://auth.example.com/oauth/token",
    )
"""

from loopback_oauth.config import MIN_TOKEN_VALIDITY, VALID_PORTS, OAuthConfig
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
)
from loopback_oauth.flows import (
    CodeGrantPKCEFlow,
    ImplicitFlow,
    run_code_grant_pkce,
    run_implicit,
)
from loopback_oauth.pkce import PKCEChallenge, generate_verifier_and_challenge
from loopback_oauth.ports import bind_first_available
from loopback_oauth.token import AuthToken

__version__ = "1.0.0"

__all__ = [
    # Core
    "run_code_grant_pkce",
    "run_implicit",
    "CodeGrantPKCEFlow",
    "ImplicitFlow",
    "OAuthConfig",
    "AuthToken",
    "PKCEChallenge",
    "generate_verifier_and_challenge",
    "bind_first_available",
    "VALID_PORTS",
    "MIN_TOKEN_VALIDITY",
    # Exceptions
    "ClientAuthError",
    "ConfigError",
    "RngInitError",
    "BindError",
    "NoAvailablePortError",
    "OAuthError",
    "OAuthResponseError",
    "StateMismatchError",
    "TokenTypeError",
    "TokenExchangeError",
    "FlowTimeoutError",
    "InternalFlowError",
]
