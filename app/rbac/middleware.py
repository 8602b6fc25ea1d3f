"""
Access-control middleware: runs before every route.

1. Resolve the session cookie (signature, then registry lookup).
2. Evaluate the access policy for the request path.
3. Anonymous on a protected path → 302 to the login page.
   Authenticated without the required role → 403, no redirect.

The resolved session (or None) is stored on `request.state.login_session`.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.exceptions import Forbidden
from app.core.security import read_session_cookie
from app.rbac.access_policy import AccessDecision
from app.services.session_manager import LoginSession

logger = logging.getLogger("rbac")


def resolve_session(request: Request) -> LoginSession | None:
    settings = request.app.state.settings
    raw = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not raw:
        return None
    claims = read_session_cookie(
        raw,
        secret_key=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    if claims is None:
        logger.debug("Discarding session cookie with a bad signature")
        return None
    sess = request.app.state.sessions.get(claims["sid"])
    if sess is None or sess.username != claims["sub"]:
        return None
    return sess


class AccessControlMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        sess = resolve_session(request)
        request.state.login_session = sess

        policy = request.app.state.access_policy
        authorities = sess.authorities if sess is not None else None
        try:
            decision = policy.check(request.url.path, authorities)
        except Forbidden:
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": "Access denied"},
            )

        if decision == AccessDecision.LOGIN_REQUIRED:
            login_url = request.app.state.settings.LOGIN_URL
            return RedirectResponse(login_url, status_code=status.HTTP_302_FOUND)

        return await call_next(request)
