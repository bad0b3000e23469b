"""Authorization Code + PKCE 플로우.

리디렉션 쿼리로 받은 code를 PKCE verifier와 함께 토큰으로 교환합니다.

- Code request: RFC 7636 4.3
- Code response: RFC 6749 4.1.2
- Token request: RFC 7636 4.5
"""

import contextlib
import logging
from collections.abc import Sequence

import httpx

from loopback_oauth.config import VALID_PORTS, OAuthConfig
from loopback_oauth.exceptions import (
    ClientAuthError,
    ConfigError,
    OAuthError,
    OAuthResponseError,
    TokenExchangeError,
)
from loopback_oauth.flows.base import (
    CLIENT_ID_PARAM,
    REDIRECT_PARAM,
    RESPONSE_TYPE_PARAM,
    STATE_PARAM,
    BrowserFlow,
)
from loopback_oauth.pages import SUCCESS_AFTER_REDIRECT
from loopback_oauth.server import REDIRECT_PATH, RedirectHandler
from loopback_oauth.pkce import PKCEChallenge, generate_pkce_challenge
from loopback_oauth.token import AuthToken, build_bearer_token, warn_if_expiring_soon

logger = logging.getLogger(__name__)

CODE_CHALLENGE_PARAM = "code_challenge"
CODE_CHALLENGE_METHOD_PARAM = "code_challenge_method"
RESPONSE_TYPE_CODE = "code"
GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"
TOKEN_REQUEST_TIMEOUT = 30.0


def parse_code_response(params: dict) -> tuple[str, str]:
    """리디렉션 쿼리에서 code와 state 추출.

    Args:
        params: 쿼리 파라미터

    Returns:
        tuple[str, str]: (code, state)

    Raises:
        OAuthError: 제공자가 error를 반환했을 때
        OAuthResponseError: code 또는 state가 없을 때
    """
    if "error" in params:
        error = params["error"]
        description = params.get("error_description") or error
        raise OAuthError(f"Authorization failed: {description}", error_code=error)

    code = params.get("code")
    if not code:
        raise OAuthResponseError("No code found in response")
    state = params.get("state")
    if not state:
        raise OAuthResponseError("No state found in response")
    return code, state


class CodeGrantHandler(RedirectHandler):
    """Authorization Code 콜백 핸들러."""

    routes = {
        **RedirectHandler.routes,
        ("GET", REDIRECT_PATH): "handle_redirect",
    }

    def handle_redirect(self, params: dict) -> None:
        code, state = parse_code_response(params)
        self.flow_state.check_state(state)
        logger.debug("Auth code received: %s...", code[:8])
        self.flow_state.complete(code)
        self.send_html(SUCCESS_AFTER_REDIRECT)


class CodeGrantPKCEFlow(BrowserFlow):
    """Authorization Code + PKCE 플로우.

    Example:
        config = OAuthConfig(
            client_id="your-client-id",
            auth_url="https://auth.example.com/authorize",
            token_url="https://auth.example.com/oauth/token",
        )
        token = CodeGrantPKCEFlow(config).authenticate()
    """

    handler_class = CodeGrantHandler

    def __init__(
        self,
        config: OAuthConfig,
        ports: Sequence[int] = VALID_PORTS,
        http_client: httpx.Client | None = None,
    ):
        """초기화.

        Args:
            config: OAuth 설정 (token_url 필수)
            ports: 시도할 포트 목록
            http_client: 토큰 교환용 클라이언트 (None이면 요청마다 생성)
        """
        if not config.token_url:
            raise ConfigError("token_url is required for the authorization code flow")
        super().__init__(config, ports)
        self.http_client = http_client
        self.pkce: PKCEChallenge | None = None

    def _prepare(self) -> None:
        self.pkce = generate_pkce_challenge()

    def _auth_params(self, redirect_uri: str, csrf_state: str) -> list[tuple[str, str]]:
        return [
            (CLIENT_ID_PARAM, self.config.client_id),
            (CODE_CHALLENGE_PARAM, self.pkce.code_challenge),
            (CODE_CHALLENGE_METHOD_PARAM, self.pkce.code_challenge_method),
            (REDIRECT_PARAM, redirect_uri),
            (RESPONSE_TYPE_PARAM, RESPONSE_TYPE_CODE),
            (STATE_PARAM, csrf_state),
        ]

    def _client(self):
        if self.http_client is not None:
            return contextlib.nullcontext(self.http_client)
        return httpx.Client(timeout=TOKEN_REQUEST_TIMEOUT)

    def exchange_code_for_token(self, code: str, redirect_uri: str) -> AuthToken:
        """인증 코드를 토큰으로 교환.

        Args:
            code: 인증 코드
            redirect_uri: 인증 요청에 사용한 redirect URI

        Returns:
            AuthToken: 토큰

        Raises:
            TokenExchangeError: HTTP 실패 또는 응답 파싱 실패
            TokenTypeError: bearer 토큰이 아닐 때
        """
        token_url = self.config.token_url
        payload = {
            "client_id": self.config.client_id,
            "code_verifier": self.pkce.code_verifier,
            "code": code,
            "grant_type": GRANT_TYPE_AUTHORIZATION_CODE,
            "redirect_uri": redirect_uri,
        }

        with self._client() as client:
            try:
                response = client.post(token_url, json=payload)
            except httpx.HTTPError as e:
                raise TokenExchangeError(f"Sending code to {token_url} failed") from e

        if not response.is_success:
            raise TokenExchangeError(
                f"Sending code to {token_url} failed, HTTP error: "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            result = response.json()
            access_token = result["access_token"]
            token_type = result["token_type"]
            expires_in = result["expires_in"]
        except (ValueError, KeyError, TypeError) as e:
            raise TokenExchangeError(
                "Failed to parse token response as JSON",
                status_code=response.status_code,
            ) from e

        return build_bearer_token(access_token, token_type, expires_in)

    def _finish(self, credential: str, redirect_uri: str) -> AuthToken:
        logger.info("Server finished, using code to request token")
        try:
            token = self.exchange_code_for_token(credential, redirect_uri)
        except ClientAuthError as e:
            raise TokenExchangeError("Failed to convert oauth2 code into a token") from e
        warn_if_expiring_soon(token)
        return token


def run_code_grant_pkce(
    client_id: str,
    auth_url: str,
    token_url: str,
    *,
    auto_open_browser: bool = False,
) -> str:
    """Authorization Code + PKCE 플로우로 access token 획득.

    Returns:
        str: bearer access token
    """
    config = OAuthConfig(
        client_id=client_id,
        auth_url=auth_url,
        token_url=token_url,
        auto_open_browser=auto_open_browser,
    )
    return CodeGrantPKCEFlow(config).authenticate().access_token
