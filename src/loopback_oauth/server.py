"""Loopback redirect 서버와 공통 핸들러.

그랜트별 핸들러는 RedirectHandler를 상속해 routes 테이블에
경로를 추가합니다.
"""

import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qsl, urlparse

from loopback_oauth.exceptions import (
    ClientAuthError,
    InternalFlowError,
    OAuthResponseError,
    format_chain,
)
from loopback_oauth.pages import REDIRECT_WITH_AUTH_JSON
from loopback_oauth.state import FlowState

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "localhost"
REDIRECT_PATH = "/redirect"


class RedirectServer(HTTPServer):
    """한 번의 플로우만 처리하는 로컬 HTTP 서버.

    flow_state는 포트가 정해진 뒤 (redirect_uri가 auth URL에 들어가야 하므로)
    오케스트레이터가 설정합니다.
    """

    def __init__(self, server_address, handler_class, flow_state: FlowState | None = None):
        self.flow_state = flow_state
        super().__init__(server_address, handler_class)

    @property
    def port(self) -> int:
        return self.server_address[1]

    @property
    def base_uri(self) -> str:
        # server_name은 FQDN을 쓰므로 사용하지 않음
        return f"http://{LOOPBACK_HOST}:{self.port}"

    @property
    def redirect_uri(self) -> str:
        return self.base_uri + REDIRECT_PATH


class RedirectHandler(BaseHTTPRequestHandler):
    """공통 라우트 (/, /auth_detail.json) 와 디스패치.

    routes: (method, path) -> 핸들러 메서드 이름
    """

    routes: dict[tuple[str, str], str] = {
        ("GET", "/"): "handle_index",
        ("GET", "/auth_detail.json"): "handle_auth_detail",
    }

    server: RedirectServer

    def log_message(self, format, *args):
        """접근 로그를 logging으로 전달."""
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self):
        self._dispatch("GET")

    def do_POST(self):
        self._dispatch("POST")

    def do_HEAD(self):
        self._dispatch("HEAD")

    def do_PUT(self):
        self._dispatch("PUT")

    def do_DELETE(self):
        self._dispatch("DELETE")

    @property
    def flow_state(self) -> FlowState:
        flow_state = self.server.flow_state
        if flow_state is None:
            raise InternalFlowError("No flow state installed on the auth server")
        return flow_state

    def _dispatch(self, method: str) -> None:
        parsed = urlparse(self.path)
        # 쿼리에는 code/token이 들어있으므로 경로만 기록
        logger.debug("Handling %s %s", method, parsed.path)

        try:
            self._drain_body()
            route = self.routes.get((method, parsed.path))
            if route is None:
                logger.warning("Route not found: %s %s", method, parsed.path)
                self.send_body(404, b"", "text/plain")
                return

            params = dict(parse_qsl(parsed.query, keep_blank_values=True))
            getattr(self, route)(params)
        except InternalFlowError:
            raise
        except ClientAuthError as e:
            self._fail_request(parsed.path, e)
        except Exception as e:
            wrapped = ClientAuthError(f"Failed to handle request to {parsed.path}")
            wrapped.__cause__ = e
            self._fail_request(parsed.path, wrapped)

    def _fail_request(self, path: str, error: ClientAuthError) -> None:
        """플로우를 실패로 종료하고 에러 체인을 응답으로 전송."""
        body = format_chain(error)
        logger.error(
            "Error during a request to %s on the client auth web server\n%s",
            path,
            body,
        )
        self.flow_state.fail(error)
        self.send_body(error.status, body.encode("utf-8"), "text/plain; charset=utf-8")

    def _drain_body(self) -> None:
        raw = self.headers.get("Content-Length") or "0"
        try:
            length = int(raw)
        except ValueError as e:
            raise OAuthResponseError(f"Malformed Content-Length header: {raw!r}") from e
        if length > 0:
            self.rfile.read(length)

    def send_body(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def send_html(self, html: str, status: int = 200) -> None:
        self.send_body(status, html.encode("utf-8"), "text/html; charset=utf-8")

    def send_json(self, data, status: int = 200) -> None:
        self.send_body(status, json.dumps(data).encode("utf-8"), "application/json")

    def handle_index(self, params: dict) -> None:
        self.send_html(REDIRECT_WITH_AUTH_JSON)

    def handle_auth_detail(self, params: dict) -> None:
        self.send_json(self.flow_state.auth_url)
