"""Request gate: session check and coarse role-based route access for every request."""

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from flowiq.core.config import API_V1_PREFIX, Settings, get_settings
from flowiq.core.rbac import DEFAULT_LANDING_PATH, can_access_route, path_matches
from flowiq.core.session import verify_token

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
CALLBACK_PARAM = "callbackUrl"

# Served without any session check.
EXEMPT_PREFIXES = ("/static", "/favicon.ico", "/docs", "/redoc", "/openapi.json")

PUBLIC_PREFIXES = (
    "/",  # exact match only, see path_matches
    "/login",
    "/register",
    "/forgot-password",
    "/reset-password",
    "/auth/login",
    "/auth/register",
    "/auth/me",
    "/auth/logout",
    "/auth/refresh",
    f"{API_V1_PREFIX}/health",
)


class GateOutcome(str, Enum):
    ALLOW = "allow"
    LOGIN = "login"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    redirect_to: str | None = None


def is_public_path(path: str) -> bool:
    return any(path_matches(path, prefix) for prefix in EXEMPT_PREFIXES + PUBLIC_PREFIXES)


def login_redirect_url(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({CALLBACK_PARAM: path})}"


def evaluate_request(
    path: str,
    token: str | None,
    *,
    settings: Settings | None = None,
) -> GateDecision:
    """
    Decide what happens to a request for `path` carrying session cookie `token`.

    Public paths pass. A missing, forged or expired token sends the user to
    login with the original path as callback. A valid session whose role
    cannot reach the path goes to the dashboard instead.

    Access is decided on the role claim inside the token. The gate does not
    consult the database, so a demoted or deleted user keeps page access
    until the token is refreshed or expires. API dependencies re-read the
    stored role; see flowiq.api.auth.require_permission.
    """
    if is_public_path(path):
        return GateDecision(GateOutcome.ALLOW)
    payload = verify_token(token, settings=settings)
    if payload is None:
        return GateDecision(GateOutcome.LOGIN, login_redirect_url(path))
    if not can_access_route(payload.role, path):
        return GateDecision(GateOutcome.FORBIDDEN, DEFAULT_LANDING_PATH)
    return GateDecision(GateOutcome.ALLOW)


class RouteGateMiddleware(BaseHTTPMiddleware):
    """Apply evaluate_request to every inbound request; only ever redirects."""

    def __init__(self, app: ASGIApp, settings: Settings | None = None) -> None:
        super().__init__(app)
        self.settings = settings or get_settings()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        token = request.cookies.get(self.settings.SESSION_COOKIE_NAME)
        decision = evaluate_request(path, token, settings=self.settings)
        if decision.outcome is GateOutcome.ALLOW:
            return await call_next(request)
        logger.debug(
            "Route gate redirect",
            extra={"path": path, "outcome": decision.outcome.value},
        )
        return RedirectResponse(url=decision.redirect_to, status_code=307)
