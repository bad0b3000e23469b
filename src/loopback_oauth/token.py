"""Access token 데이터 클래스 및 검증."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from rich.console import Console

from loopback_oauth.config import MIN_TOKEN_VALIDITY, MIN_TOKEN_VALIDITY_WARNING
from loopback_oauth.exceptions import OAuthResponseError, TokenTypeError

logger = logging.getLogger(__name__)
console = Console(stderr=True)

TOKEN_TYPE_BEARER = "bearer"  # 대소문자 무시


@dataclass
class AuthToken:
    """인증 토큰 데이터 클래스"""

    access_token: str
    expires_at: datetime | None = None
    token_type: str = "Bearer"

    def __repr__(self) -> str:
        return (
            f"AuthToken(access_token='{self.access_token[:8]}...', "
            f"expires_at={self.expires_at!r}, token_type={self.token_type!r})"
        )

    def is_expired(self) -> bool:
        """토큰 만료 여부 확인"""
        if self.expires_at is None:
            return False
        return datetime.now() >= self.expires_at

    def expires_within(self, delta: timedelta) -> bool:
        """남은 유효 기간이 delta 미만인지 확인"""
        if self.expires_at is None:
            return False
        return self.expires_at - datetime.now() < delta

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "access_token": self.access_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "token_type": self.token_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuthToken":
        """딕셔너리에서 생성"""
        expires_at = None
        if data.get("expires_at"):
            expires_at = datetime.fromisoformat(data["expires_at"])
        return cls(
            access_token=data["access_token"],
            expires_at=expires_at,
            token_type=data.get("token_type", "Bearer"),
        )


def parse_expires_in(value) -> int:
    """expires_in 값을 초 단위 정수로 변환.

    Raises:
        OAuthResponseError: 정수가 아니거나 음수일 때
    """
    try:
        seconds = int(value)
    except (TypeError, ValueError) as e:
        raise OAuthResponseError("Failed to parse expiry as integer") from e
    if seconds < 0:
        raise OAuthResponseError("Failed to parse expiry as integer")
    return seconds


def build_bearer_token(access_token: str, token_type: str, expires_in) -> AuthToken:
    """토큰 응답 필드를 검증하고 AuthToken 생성.

    만료 시각은 요청 지연에 따른 오차를 줄이기 위해 파싱 즉시 계산합니다.

    Args:
        access_token: 액세스 토큰
        token_type: 토큰 타입 (bearer 여야 함)
        expires_in: 유효 기간 (초)

    Returns:
        AuthToken: 만료 시각이 포함된 토큰

    Raises:
        TokenTypeError: bearer 토큰이 아닐 때
        OAuthResponseError: expires_in 파싱 실패 시
    """
    if str(token_type).lower() != TOKEN_TYPE_BEARER:
        raise TokenTypeError(f"Token type in response is not {TOKEN_TYPE_BEARER}")
    seconds = parse_expires_in(expires_in)
    try:
        expires_at = datetime.now() + timedelta(seconds=seconds)
    except (OverflowError, ValueError) as e:
        raise OAuthResponseError("Failed to parse expiry as integer") from e
    return AuthToken(
        access_token=access_token,
        expires_at=expires_at,
        token_type=token_type,
    )


def warn_if_expiring_soon(token: AuthToken) -> bool:
    """유효 기간이 짧은 토큰이면 경고 (플로우는 계속 진행).

    Returns:
        bool: 경고 출력 여부
    """
    if not token.expires_within(MIN_TOKEN_VALIDITY):
        return False
    message = f"Token retrieved expires in under {MIN_TOKEN_VALIDITY_WARNING}"
    logger.warning(message)
    console.print(f"[yellow]Warning: {message}[/yellow]")
    return True
