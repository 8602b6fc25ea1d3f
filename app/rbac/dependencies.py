"""
RBAC dependencies: per-route access to the caller's session.

The access-control middleware has already resolved the session cookie
and applied the path policy by the time a route runs; these
dependencies hand the result to route handlers.

Usage in a route:
    @router.get("/cart")
    async def view_cart(sess: LoginSession = Depends(get_current_session)): ...

Or guard a route explicitly on top of the path policy:
    @router.post("/alumnos", dependencies=[Depends(require_role("ADMIN"))])
"""

import logging

from fastapi import Depends, HTTPException, Request, status

from app.core.exceptions import Forbidden
from app.rbac.access_policy import has_role
from app.services.session_manager import LoginSession, SessionManager

logger = logging.getLogger("rbac")


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_optional_session(request: Request) -> LoginSession | None:
    return getattr(request.state, "login_session", None)


def get_current_session(
    request: Request,
    sess: LoginSession | None = Depends(get_optional_session),
) -> LoginSession:
    """The caller's session; anonymous callers are sent to the login page."""
    if sess is None:
        raise HTTPException(
            status_code=status.HTTP_302_FOUND,
            headers={"Location": request.app.state.settings.LOGIN_URL},
        )
    return sess


class require_role:
    """
    Dependency factory.

    Can be used as:
        Depends(require_role("ADMIN"))
    """

    def __init__(self, role: str):
        self.role = role

    def __call__(
        self,
        request: Request,
        sess: LoginSession = Depends(get_current_session),
    ) -> LoginSession:
        if not has_role(sess.authorities, self.role):
            logger.warning(
                "Role check failed for %s, required: %s, granted: %s",
                sess.username,
                self.role,
                set(sess.authorities),
            )
            raise Forbidden(request.url.path, self.role)
        return sess
