"""OAuth 설정 및 상수."""

import os
from dataclasses import dataclass
from datetime import timedelta

from loopback_oauth.exceptions import ConfigError

# OAuth 제공자에 redirect URL로 사전 등록된 포트 (런타임 변경 불가)
VALID_PORTS: tuple[int, ...] = (12731, 32492, 56909)

# 토큰 유효 기간이 이보다 짧으면 경고 출력
MIN_TOKEN_VALIDITY = timedelta(days=2)
MIN_TOKEN_VALIDITY_WARNING = "two days"

ENV_PREFIX = "LOOPBACK_OAUTH_"


@dataclass
class OAuthConfig:
    """OAuth 설정.

    Attributes:
        client_id: OAuth Client ID
        auth_url: 제공자의 authorization endpoint
        token_url: 토큰 교환 endpoint (Authorization Code 플로우만 필요)
        extra_params: auth URL에 추가할 파라미터 (예: scope)
        auto_open_browser: 로컬 URL을 브라우저로 자동 열기
    """

    client_id: str
    auth_url: str
    token_url: str | None = None
    extra_params: dict | None = None
    auto_open_browser: bool = False

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "OAuthConfig":
        """환경 변수에서 설정 생성.

        {prefix}CLIENT_ID, {prefix}AUTH_URL, {prefix}TOKEN_URL 을 읽습니다.

        Raises:
            ConfigError: 필수 값이 없을 때
        """
        client_id = os.environ.get(f"{prefix}CLIENT_ID")
        auth_url = os.environ.get(f"{prefix}AUTH_URL")
        missing = [
            name
            for name, value in (("CLIENT_ID", client_id), ("AUTH_URL", auth_url))
            if not value
        ]
        if missing:
            names = ", ".join(prefix + name for name in missing)
            raise ConfigError(f"Missing required environment variables: {names}")

        return cls(
            client_id=client_id,
            auth_url=auth_url,
            token_url=os.environ.get(f"{prefix}TOKEN_URL") or None,
        )
