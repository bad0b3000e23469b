"""Shared test fixtures."""

import socket
import threading
import time
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from loopback_oauth.server import RedirectServer


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("localhost", 0))
        return s.getsockname()[1]


def wait_for_listener(port: int, timeout: float = 5.0) -> None:
    """포트에 리스너가 뜰 때까지 대기."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.5):
                return
        except OSError:
            if time.monotonic() >= deadline:
                raise
            time.sleep(0.02)


def local_client(port: int) -> httpx.Client:
    """로컬 redirect 서버용 클라이언트 (프록시 환경 변수 무시)."""
    return httpx.Client(base_url=f"http://127.0.0.1:{port}", trust_env=False)


def raw_request(port: int, request: bytes) -> bytes:
    """httpx가 거부하는 잘못된 요청을 소켓으로 직접 전송하고 응답 전체를 반환."""
    chunks = []
    with socket.create_connection(("127.0.0.1", port), timeout=5) as sock:
        sock.sendall(request)
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def csrf_state_of(auth_url: str) -> str:
    return parse_qs(urlsplit(auth_url).query)["state"][0]


class FlowRunner:
    """flow.authenticate()를 백그라운드 스레드에서 실행."""

    def __init__(self, flow, timeout: float | None = 10.0):
        self.flow = flow
        self.result = None
        self.error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, args=(timeout,), daemon=True)

    def _run(self, timeout: float | None) -> None:
        try:
            self.result = self.flow.authenticate(timeout=timeout)
        except BaseException as e:
            self.error = e

    def start(self, port: int) -> "FlowRunner":
        self._thread.start()
        wait_for_listener(port)
        return self

    def join(self, timeout: float = 10.0) -> None:
        self._thread.join(timeout)
        assert not self._thread.is_alive(), "flow did not finish"


@pytest.fixture
def free_port() -> int:
    """현재 비어 있는 loopback 포트."""
    return _unused_port()


@pytest.fixture
def occupied_ports():
    """리스너가 떠 있는 loopback 포트 3개."""
    sockets = []
    for _ in range(3):
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        s.bind(("localhost", 0))
        s.listen()
        sockets.append(s)

    yield [s.getsockname()[1] for s in sockets]

    for s in sockets:
        s.close()


@pytest.fixture
def serve_flow():
    """FlowState를 설치한 RedirectServer를 임시 포트에서 실행.

    Returns:
        callable: (handler_class, flow_state) -> httpx.Client
    """
    running = []

    def _serve(handler_class, flow_state) -> httpx.Client:
        server = RedirectServer(("localhost", 0), handler_class, flow_state)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        client = local_client(server.port)
        running.append((server, thread, client))
        return client

    yield _serve

    for server, thread, client in running:
        client.close()
        server.shutdown()
        server.server_close()
        thread.join()


@pytest.fixture
def run_flow():
    """FlowRunner 생성 헬퍼."""

    def _run(flow, port: int, timeout: float | None = 10.0) -> FlowRunner:
        return FlowRunner(flow, timeout=timeout).start(port)

    return _run
