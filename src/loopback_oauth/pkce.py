"""PKCE (RFC 7636) 및 CSRF state 생성."""

import base64
import hashlib
import secrets
import uuid
from dataclasses import dataclass

from loopback_oauth.exceptions import RngInitError

NUM_CODE_VERIFIER_BYTES = 256 // 8
CODE_CHALLENGE_METHOD = "S256"


@dataclass
class PKCEChallenge:
    """PKCE (Proof Key for Code Exchange) 챌린지."""

    code_verifier: str
    code_challenge: str
    code_challenge_method: str = CODE_CHALLENGE_METHOD

    def __repr__(self) -> str:
        # verifier는 로그에 남기지 않음
        return (
            f"PKCEChallenge(code_challenge={self.code_challenge!r}, "
            f"code_challenge_method={self.code_challenge_method!r})"
        )


def _urlsafe_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def derive_challenge(code_verifier: str) -> str:
    """code_verifier 문자열의 SHA256 해시를 base64url 인코딩."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return _urlsafe_b64(digest)


def generate_verifier_and_challenge() -> tuple[str, str]:
    """PKCE verifier와 challenge 생성.

    원시 바이트가 아닌 인코딩된 verifier 문자열을 해싱합니다.
    토큰 엔드포인트가 같은 방식으로 재계산합니다.

    Returns:
        tuple[str, str]: (code_verifier, code_challenge)

    Raises:
        RngInitError: OS 난수 소스를 사용할 수 없을 때
    """
    try:
        verifier_bytes = secrets.token_bytes(NUM_CODE_VERIFIER_BYTES)
    except (NotImplementedError, OSError) as e:
        raise RngInitError("Failed to initialise a random number generator") from e

    code_verifier = _urlsafe_b64(verifier_bytes)
    return code_verifier, derive_challenge(code_verifier)


def generate_pkce_challenge() -> PKCEChallenge:
    """PKCE 챌린지 생성.

    Returns:
        PKCEChallenge: code_verifier와 code_challenge 포함
    """
    code_verifier, code_challenge = generate_verifier_and_challenge()
    return PKCEChallenge(
        code_verifier=code_verifier,
        code_challenge=code_challenge,
    )


def generate_csrf_state() -> str:
    """추측 불가능한 CSRF state 값 (UUID4, 하이픈 없음)."""
    return uuid.uuid4().hex
