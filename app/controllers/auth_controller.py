"""
Auth controller: login, logout & registration pages.

All routes here are PUBLIC in the access policy.  Every login failure
(unknown user, wrong password, session cap) ends in the same redirect
to `/login?error`, so the response never tells which part was wrong.
"""

import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import (
    DuplicateUser,
    InvalidCredentials,
    PasswordMismatch,
    PasswordTooLong,
    TooManySessions,
    UserNotFound,
)
from app.core.security import sign_session_cookie
from app.rbac.dependencies import get_optional_session, get_session_manager
from app.schemas import LoginPage, RegistrationForm, RegistrationPage, normalize_username
from app.services import auth_service
from app.services.session_manager import LoginSession, SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


# ── Login ────────────────────────────────────────────────────────────
@router.get("/login", response_model=LoginPage)
async def login_page(request: Request):
    params = request.query_params
    return LoginPage(
        error="error" in params,
        logout="logout" in params,
        registro_exitoso="registroExitoso" in params,
    )


@router.post("/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    current: LoginSession | None = Depends(get_optional_session),
    sessions: SessionManager = Depends(get_session_manager),
    db: AsyncSession = Depends(get_db),
):
    """Check the submitted credentials and start a session."""
    settings = request.app.state.settings
    try:
        sess = await auth_service.authenticate(
            normalize_username(username),
            password,
            db,
            sessions,
            rounds=settings.BCRYPT_ROUNDS,
        )
    except (UserNotFound, InvalidCredentials, TooManySessions):
        return _redirect(f"{settings.LOGIN_URL}?error")

    # A fresh session id on every login; the one the client came with is dropped.
    if current is not None:
        sessions.invalidate(current.id)

    response = _redirect(settings.DEFAULT_SUCCESS_URL)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=sign_session_cookie(
            sess.id,
            sess.username,
            secret_key=settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        ),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
        path="/",
    )
    return response


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(
    request: Request,
    current: LoginSession | None = Depends(get_optional_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    """End the current session (if any) and go back to the login page."""
    settings = request.app.state.settings
    if current is not None:
        auth_service.logout(current.id, sessions)
        logger.info("User %r logged out", current.username)
    response = _redirect(f"{settings.LOGIN_URL}?logout")
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response


# ── Registration ─────────────────────────────────────────────────────
@router.get("/registro", response_model=RegistrationPage)
async def registration_page():
    return RegistrationPage()


@router.post("/registro")
async def register(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form("", alias="confirmPassword"),
    db: AsyncSession = Depends(get_db),
):
    """Create an account; on any validation problem re-render the form with errors."""
    settings = request.app.state.settings
    errors: dict[str, list[str]] = {}

    try:
        form = RegistrationForm(
            username=username,
            password=password,
            confirmPassword=confirm_password,
        )
    except ValidationError as exc:
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "form"
            errors.setdefault(field, []).append(err["msg"])
        return _form_errors(username, errors)

    try:
        await auth_service.register_user(
            form.username,
            form.password.get_secret_value(),
            form.confirm_password.get_secret_value(),
            db,
            default_role=settings.DEFAULT_ROLE,
            rounds=settings.BCRYPT_ROUNDS,
        )
    except PasswordMismatch:
        errors["confirmPassword"] = ["Passwords do not match"]
        return _form_errors(form.username, errors)
    except DuplicateUser:
        errors["username"] = ["Username is already taken"]
        return _form_errors(form.username, errors)
    except PasswordTooLong as exc:
        errors["password"] = [str(exc)]
        return _form_errors(form.username, errors)

    return _redirect(f"{settings.LOGIN_URL}?registroExitoso")


def _form_errors(username: str, errors: dict[str, list[str]]) -> JSONResponse:
    page = RegistrationPage(username=username, errors=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=page.model_dump())
