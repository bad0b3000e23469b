"""Browser flow 공통 드라이버.

포트 바인딩, 서버 스레드, 종료 신호 대기를 담당합니다.
그랜트별 서브클래스는 핸들러 클래스, auth URL 파라미터,
자격 증명 후처리만 제공합니다.

플로우:
1. 허용된 포트에 로컬 서버 바인딩
2. CSRF state (및 PKCE) 생성, auth URL 완성
3. 로컬 URL 안내 후 서버 스레드 시작
4. 핸들러의 종료 신호 대기
5. 결과 채널에서 자격 증명 수신 및 후처리
"""

import asyncio
import logging
import threading
import webbrowser
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from rich.console import Console
from rich.panel import Panel

from loopback_oauth.config import VALID_PORTS, OAuthConfig
from loopback_oauth.exceptions import ClientAuthError, ConfigError, FlowTimeoutError
from loopback_oauth.pkce import generate_csrf_state
from loopback_oauth.ports import bind_first_available
from loopback_oauth.server import RedirectHandler, RedirectServer
from loopback_oauth.state import FlowState
from loopback_oauth.token import AuthToken

logger = logging.getLogger(__name__)
console = Console()

CLIENT_ID_PARAM = "client_id"
REDIRECT_PARAM = "redirect_uri"
RESPONSE_TYPE_PARAM = "response_type"
STATE_PARAM = "state"


class BrowserFlow(ABC):
    """브라우저 기반 OAuth 플로우 베이스.

    Example:
        flow = CodeGrantPKCEFlow(config)
        token = flow.authenticate()
    """

    handler_class: type[RedirectHandler] = RedirectHandler

    def __init__(self, config: OAuthConfig, ports: Sequence[int] = VALID_PORTS):
        """초기화.

        Args:
            config: OAuth 설정
            ports: 시도할 포트 목록 (기본: 제공자에 등록된 포트)
        """
        self.config = config
        self.ports = tuple(ports)
        self._check_auth_url()

    def _check_auth_url(self) -> None:
        parts = urlsplit(self.config.auth_url)
        if not parts.scheme or not parts.netloc:
            raise ConfigError(f"Failed to parse auth url: {self.config.auth_url!r}")

    @abstractmethod
    def _auth_params(self, redirect_uri: str, csrf_state: str) -> list[tuple[str, str]]:
        """auth URL에 추가할 그랜트별 쿼리 파라미터 (순서 유지)."""

    @abstractmethod
    def _finish(self, credential: Any, redirect_uri: str) -> AuthToken:
        """핸들러가 전달한 자격 증명을 토큰으로 완성."""

    def _prepare(self) -> None:
        """서버 시작 전 플로우별 비밀 값 생성 (필요 시 오버라이드)."""

    def build_authorization_url(self, redirect_uri: str, csrf_state: str) -> str:
        """기존 쿼리를 유지하면서 제공자 파라미터를 붙인 auth URL.

        Args:
            redirect_uri: 로컬 서버의 redirect URI
            csrf_state: CSRF state 값

        Returns:
            str: 완성된 auth URL
        """
        parts = urlsplit(self.config.auth_url)
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        pairs.extend(self._auth_params(redirect_uri, csrf_state))
        if self.config.extra_params:
            pairs.extend(self.config.extra_params.items())
        return urlunsplit(parts._replace(query=urlencode(pairs)))

    def _display_instructions(self, local_url: str) -> None:
        logger.info("Listening on %s with 1 thread.", local_url)
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Please visit {local_url} in your browser[/bold cyan]",
                title="[AUTH] Login Required",
                border_style="cyan",
            )
        )
        console.print()
        if self.config.auto_open_browser:
            webbrowser.open(local_url)
            console.print("[dim]브라우저가 열렸습니다.[/dim]")
        console.print("[dim]브라우저에서 로그인 후 대기 중...[/dim]")

    @staticmethod
    def _serve(server: RedirectServer, flow_state: FlowState) -> None:
        logger.debug("Listening on port %d", server.port)
        try:
            server.serve_forever()
        except Exception as e:
            logger.exception("Auth server listener failed")
            flow_state.abort(e)
        logger.debug("Server exiting")

    def _wait_for_credential(
        self,
        server: RedirectServer,
        flow_state: FlowState,
        timeout: float | None,
    ) -> Any:
        thread = threading.Thread(
            target=self._serve,
            args=(server, flow_state),
            name=f"loopback-oauth-{server.port}",
            daemon=True,
        )
        thread.start()

        try:
            if not flow_state.wait(timeout):
                raise FlowTimeoutError("Timed out waiting for the browser redirect")
        finally:
            # 처리 중인 요청의 응답이 끝난 뒤 serve_forever가 반환됨
            server.shutdown()
            thread.join()

        error = flow_state.error
        if isinstance(error, ClientAuthError):
            raise error
        if error is not None:
            raise ClientAuthError("Auth server stopped unexpectedly") from error

        # 결과는 종료 신호보다 먼저 들어가므로 항상 존재해야 함
        return flow_state.result_channel.try_recv()

    def authenticate(self, timeout: float | None = None) -> AuthToken:
        """인증 수행 (브라우저 리디렉션까지 블로킹).

        Args:
            timeout: 리디렉션 대기 시간 (초, None이면 무제한)

        Returns:
            AuthToken: 만료 시각이 포함된 토큰

        Raises:
            ClientAuthError: 설정, 프로토콜, 토큰 교환 실패 시
        """
        server = bind_first_available(self.ports, self.handler_class)
        try:
            redirect_uri = server.redirect_uri
            csrf_state = generate_csrf_state()
            self._prepare()
            auth_url = self.build_authorization_url(redirect_uri, csrf_state)

            flow_state = FlowState(auth_url, csrf_state)
            server.flow_state = flow_state

            self._display_instructions(server.base_uri)
            credential = self._wait_for_credential(server, flow_state, timeout)
        finally:
            server.server_close()
            logger.debug("HTTP Server closed")

        token = self._finish(credential, redirect_uri)
        console.print("[bold green][OK] 인증 성공![/bold green]")
        return token

    async def authenticate_async(self, timeout: float | None = None) -> AuthToken:
        """asyncio 호출자를 위한 authenticate (워커 스레드에서 실행)."""
        return await asyncio.to_thread(self.authenticate, timeout)
