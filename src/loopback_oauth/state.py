"""플로우 단위 상태와 one-shot 동기화 도구.

HTTP 핸들러 스레드와 호출 스레드가 공유하는 상태.
결과 전달은 항상 종료 신호보다 먼저 일어나므로 (happens-before),
종료 신호를 받은 호출자는 결과를 즉시 꺼낼 수 있습니다.
"""

import logging
import queue
import secrets
import threading
from typing import Any

from loopback_oauth.exceptions import InternalFlowError, StateMismatchError

logger = logging.getLogger(__name__)


class OneShot:
    """한 번만 발사할 수 있는 신호 (armed -> fired).

    두 번째 fire()는 InternalFlowError.
    """

    def __init__(self, name: str = "signal"):
        self.name = name
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._fired = False
        self._value: Any = None

    @property
    def armed(self) -> bool:
        return not self._fired

    @property
    def value(self) -> Any:
        """fire() 시 전달된 값 (실패 플로우에서는 예외)."""
        return self._value

    def fire(self, value: Any = None) -> None:
        with self._lock:
            if self._fired:
                raise InternalFlowError(f"{self.name} already fired")
            self._fired = True
            self._value = value
        self._event.set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


class ResultChannel:
    """용량 1의 결과 채널. 한 플로우에서 최대 한 번만 전송."""

    def __init__(self):
        self._queue: queue.Queue = queue.Queue(maxsize=1)

    def send(self, item: Any) -> None:
        try:
            self._queue.put_nowait(item)
        except queue.Full:
            raise InternalFlowError("Result channel already holds a credential") from None

    def try_recv(self) -> Any:
        """결과를 블로킹 없이 꺼냄.

        Raises:
            InternalFlowError: 결과가 없을 때 (로직 결함)
        """
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            raise InternalFlowError(
                "Server shut down but credential not available - internal error"
            ) from None


class FlowState:
    """한 번의 인증 플로우에 대한 상태.

    서버 인스턴스에 붙어 핸들러로 전달됩니다 (모듈 전역 없음).

    Attributes:
        auth_url: 브라우저가 이동할 제공자 인증 URL
        expected_csrf_state: 이번 플로우의 CSRF state 값
        result_channel: 자격 증명 전달 채널 (용량 1)
        shutdown_signal: 서버 종료 신호 (one-shot)
    """

    def __init__(self, auth_url: str, expected_csrf_state: str):
        self.auth_url = auth_url
        self.expected_csrf_state = expected_csrf_state
        self.result_channel = ResultChannel()
        self.shutdown_signal = OneShot("shutdown signal")
        self.lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"FlowState(auth_url={self.auth_url!r}, "
            f"completed={not self.shutdown_signal.armed})"
        )

    @property
    def completed(self) -> bool:
        return not self.shutdown_signal.armed

    @property
    def error(self) -> BaseException | None:
        """실패로 종료된 경우 그 예외."""
        return self.shutdown_signal.value

    def check_state(self, state: str) -> None:
        """리디렉션에 돌아온 state 값 검증 (CSRF 방어).

        Raises:
            StateMismatchError: 값이 다를 때
        """
        # str 비교는 ASCII만 허용하므로 bytes로 비교
        if not secrets.compare_digest(
            state.encode("utf-8"), self.expected_csrf_state.encode("utf-8")
        ):
            raise StateMismatchError("Mismatched auth states after redirect")

    def complete(self, credential: Any) -> None:
        """자격 증명 전달 후 종료 신호 발사.

        Raises:
            InternalFlowError: 이미 완료된 플로우일 때
        """
        with self.lock:
            if not self.shutdown_signal.armed:
                raise InternalFlowError("Flow already completed, shutdown signal consumed")
            # 순서 고정: 결과가 먼저, 종료 신호는 나중
            self.result_channel.send(credential)
            self.shutdown_signal.fire()
        logger.debug("Flow completed, shutdown signalled")

    def fail(self, error: BaseException) -> None:
        """결과 없이 실패로 종료 신호 발사.

        Raises:
            InternalFlowError: 이미 완료된 플로우일 때
        """
        with self.lock:
            if not self.shutdown_signal.armed:
                raise InternalFlowError("Flow already completed, shutdown signal consumed")
            self.shutdown_signal.fire(error)
        logger.debug("Flow failed: %s", error)

    def abort(self, error: BaseException) -> bool:
        """리스너 장애 시 아직 발사 전이면 실패로 종료.

        Returns:
            bool: 이번 호출로 신호가 발사되었는지
        """
        with self.lock:
            if not self.shutdown_signal.armed:
                return False
            self.shutdown_signal.fire(error)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """종료 신호 대기.

        Returns:
            bool: 신호 수신 여부 (False면 타임아웃)
        """
        return self.shutdown_signal.wait(timeout)
