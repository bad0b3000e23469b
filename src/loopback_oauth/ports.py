"""허용된 loopback 포트 중 첫 번째 빈 포트에 서버 바인딩.

일부 플랫폼은 SO_REUSEADDR/SO_REUSEPORT로 한 포트에 여러 리스너를 허용하므로
bind만으로는 "사용 중"을 알 수 없습니다. 먼저 connect로 점검합니다.
"""

import errno
import logging
import socket
from collections.abc import Sequence

from loopback_oauth.config import VALID_PORTS
from loopback_oauth.exceptions import BindError, NoAvailablePortError
from loopback_oauth.server import LOOPBACK_HOST, RedirectHandler, RedirectServer

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 1.0


def _is_port_open(host: str, port: int) -> bool:
    """이미 리스너가 있는 포트인지 connect로 확인.

    Raises:
        OSError: 연결 거부 이외의 에러
    """
    try:
        with socket.create_connection((host, port), timeout=PROBE_TIMEOUT):
            return True
    except ConnectionRefusedError:
        return False


def bind_first_available(
    ports: Sequence[int] = VALID_PORTS,
    handler_class: type[RedirectHandler] = RedirectHandler,
) -> RedirectServer:
    """포트 목록을 순서대로 시도해 첫 번째 빈 포트에 바인딩.

    Args:
        ports: 제공자에 등록된 포트 목록 (순서대로 시도)
        handler_class: 요청 핸들러 클래스

    Returns:
        RedirectServer: 바인딩된 서버 (아직 serve 전)

    Raises:
        BindError: 점검/바인딩 중 포트 사용 중 이외의 에러
        NoAvailablePortError: 모든 포트가 사용 중일 때
    """
    for port in ports:
        address = (LOOPBACK_HOST, port)

        try:
            if _is_port_open(*address):
                logger.debug("Port %d already in use, skipping", port)
                continue
        except OSError as e:
            raise BindError(
                f"Failed to check {LOOPBACK_HOST}:{port} is available for binding",
                address=address,
            ) from e

        try:
            server = RedirectServer(address, handler_class)
        except OSError as e:
            # 점검과 바인딩 사이에 다른 프로세스가 포트를 가져감
            if e.errno == errno.EADDRINUSE:
                logger.debug("Port %d taken after probe, skipping", port)
                continue
            raise BindError(
                f"Failed to bind to {LOOPBACK_HOST}:{port}", address=address
            ) from e

        logger.debug("Bound auth server to %s:%d", LOOPBACK_HOST, port)
        return server

    raise NoAvailablePortError(ports)
