"""Custom authentication exceptions.

인증 플로우 예외 클래스 정의.
설정 단계, 프로토콜 단계, 토큰 교환 단계별 계층 구조 제공.
"""


class ClientAuthError(Exception):
    """기본 인증 예외.

    모든 인증 플로우 예외의 베이스 클래스.

    Attributes:
        provider: 인증 제공자 이름 (선택)
        status: 핸들러에서 발생했을 때 브라우저에 반환할 HTTP 상태 코드
    """

    status = 500

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message)


# 설정 단계 에러 (브라우저 상호작용 전에 중단)


class ConfigError(ClientAuthError):
    """설정 값 누락 또는 auth URL 파싱 실패."""
    pass


class RngInitError(ClientAuthError):
    """난수 생성기 초기화 실패."""
    pass


class BindError(ClientAuthError):
    """포트 점검 또는 바인딩 중 치명적 에러.

    Attributes:
        address: 실패한 (host, port)
    """

    def __init__(self, message: str, address: tuple[str, int] | None = None):
        self.address = address
        super().__init__(message)


class NoAvailablePortError(BindError):
    """허용된 포트 중 사용 가능한 포트가 없음.

    Attributes:
        ports: 시도한 전체 포트 목록
    """

    def __init__(self, ports):
        self.ports = tuple(ports)
        super().__init__(f"Could not bind to any valid port: {list(self.ports)}")


# 프로토콜 단계 에러 (리디렉션 처리 중)


class OAuthError(ClientAuthError):
    """OAuth 제공자가 에러를 반환함.

    Attributes:
        error_code: OAuth 에러 코드 (예: 'access_denied')
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider: str | None = None
    ):
        self.error_code = error_code
        super().__init__(message, provider)


class OAuthResponseError(ClientAuthError):
    """리디렉션 응답에 필수 파라미터가 없거나 형식이 잘못됨."""

    status = 400


class StateMismatchError(ClientAuthError):
    """CSRF state 값 불일치."""
    pass


class TokenTypeError(ClientAuthError):
    """토큰 타입이 bearer가 아님."""
    pass


# 토큰 교환 단계 에러


class TokenExchangeError(ClientAuthError):
    """인증 코드를 토큰으로 교환하지 못함.

    Attributes:
        status_code: 토큰 엔드포인트의 HTTP 상태 코드 (있는 경우)
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class FlowTimeoutError(ClientAuthError):
    """브라우저 리디렉션 대기 시간 초과."""
    pass


class InternalFlowError(RuntimeError):
    """내부 불변식 위반.

    one-shot 채널 중복 사용 등 로직 결함을 나타냄.
    사용자 복구 대상이 아니므로 ClientAuthError를 상속하지 않음.
    """
    pass


def format_chain(error: BaseException) -> str:
    """예외와 그 원인(__cause__)을 한 줄씩 나열.

    Args:
        error: 최상위 예외

    Returns:
        str: "Error: ..." 다음에 "Caused by: ..." 줄이 이어지는 메시지
    """
    lines = [f"Error: {error}"]
    cause = error.__cause__
    while cause is not None:
        lines.append(f"Caused by: {cause}")
        cause = cause.__cause__
    return "\n".join(lines)
