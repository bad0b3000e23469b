"""Implicit Grant 플로우.

토큰이 URL fragment로 돌아오므로 서버에 전달되지 않습니다.
/redirect 페이지의 스크립트가 fragment를 읽어 /save_auth로 POST 합니다.

- Request: RFC 6749 4.2.1
- Response: RFC 6749 4.2.2
"""

import logging

from loopback_oauth.config import OAuthConfig
from loopback_oauth.exceptions import OAuthError, OAuthResponseError
from loopback_oauth.flows.base import (
    CLIENT_ID_PARAM,
    REDIRECT_PARAM,
    RESPONSE_TYPE_PARAM,
    STATE_PARAM,
    BrowserFlow,
)
from loopback_oauth.pages import SAVE_AUTH_AFTER_REDIRECT
from loopback_oauth.server import REDIRECT_PATH, RedirectHandler
from loopback_oauth.token import AuthToken, build_bearer_token, warn_if_expiring_soon

logger = logging.getLogger(__name__)

RESPONSE_TYPE_TOKEN = "token"
SAVE_AUTH_PATH = "/save_auth"


def parse_token_response(params: dict) -> tuple[AuthToken, str]:
    """fragment 쿼리에서 토큰과 state 추출.

    Args:
        params: fragment를 쿼리 문자열로 파싱한 파라미터

    Returns:
        tuple[AuthToken, str]: (토큰, state)

    Raises:
        OAuthError: 제공자가 error를 반환했을 때
        OAuthResponseError: 필수 필드 누락 또는 expiry 파싱 실패
        TokenTypeError: bearer 토큰이 아닐 때
    """
    if "error" in params:
        error = params["error"]
        description = params.get("error_description") or error
        raise OAuthError(f"Authorization failed: {description}", error_code=error)

    access_token = params.get("access_token")
    if not access_token:
        raise OAuthResponseError("No token found in response")
    token_type = params.get("token_type")
    if not token_type:
        raise OAuthResponseError("No token type found in response")
    if "expires_in" not in params:
        raise OAuthResponseError("No expiry found in response")
    state = params.get("state")
    if not state:
        raise OAuthResponseError("No state found in response")

    token = build_bearer_token(access_token, token_type, params["expires_in"])
    return token, state


class ImplicitHandler(RedirectHandler):
    """Implicit Grant 콜백 핸들러."""

    routes = {
        **RedirectHandler.routes,
        ("GET", REDIRECT_PATH): "handle_redirect",
        ("POST", SAVE_AUTH_PATH): "handle_save_auth",
    }

    def handle_redirect(self, params: dict) -> None:
        self.send_html(SAVE_AUTH_AFTER_REDIRECT)

    def handle_save_auth(self, params: dict) -> None:
        token, state = parse_token_response(params)
        self.flow_state.check_state(state)
        warn_if_expiring_soon(token)
        logger.debug("Access token received: %s...", token.access_token[:8])
        self.flow_state.complete(token)
        self.send_json("")


class ImplicitFlow(BrowserFlow):
    """Implicit Grant 플로우.

    Example:
        config = OAuthConfig(
            client_id="your-client-id",
            auth_url="https://auth.example.com/authorize",
        )
        token = ImplicitFlow(config).authenticate()
    """

    handler_class = ImplicitHandler

    def _auth_params(self, redirect_uri: str, csrf_state: str) -> list[tuple[str, str]]:
        return [
            (CLIENT_ID_PARAM, self.config.client_id),
            (REDIRECT_PARAM, redirect_uri),
            (RESPONSE_TYPE_PARAM, RESPONSE_TYPE_TOKEN),
            (STATE_PARAM, csrf_state),
        ]

    def _finish(self, credential: AuthToken, redirect_uri: str) -> AuthToken:
        logger.info("Server finished, returning token")
        return credential


def run_implicit(
    client_id: str,
    auth_url: str,
    *,
    auto_open_browser: bool = False,
) -> str:
    """Implicit Grant 플로우로 access token 획득.

    만료 시각이 필요하면 ImplicitFlow.authenticate()를 사용합니다.

    Returns:
        str: bearer access token
    """
    config = OAuthConfig(
        client_id=client_id,
        auth_url=auth_url,
        auto_open_browser=auto_open_browser,
    )
    return ImplicitFlow(config).authenticate().access_token
