"""OAuth Flows

로컬 redirect 서버 기반 브라우저 인증 플로우.
Authorization Code + PKCE 와 Implicit Grant 지원.
"""

from loopback_oauth.flows.base import BrowserFlow
from loopback_oauth.flows.code_grant import (
    CodeGrantHandler,
    CodeGrantPKCEFlow,
    run_code_grant_pkce,
)
from loopback_oauth.flows.implicit import ImplicitFlow, ImplicitHandler, run_implicit
from loopback_oauth.server import RedirectHandler, RedirectServer
from loopback_oauth.state import FlowState, OneShot, ResultChannel

__all__ = [
    "BrowserFlow",
    # Authorization Code + PKCE
    "CodeGrantPKCEFlow",
    "CodeGrantHandler",
    "run_code_grant_pkce",
    # Implicit Grant
    "ImplicitFlow",
    "ImplicitHandler",
    "run_implicit",
    # Server / state
    "RedirectServer",
    "RedirectHandler",
    "FlowState",
    "OneShot",
    "ResultChannel",
]
