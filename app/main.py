"""
FastAPI application factory.

Assembles the app from an explicit Settings object: database engine,
access policy and session manager are built here and parked on
`app.state`, then torn down on shutdown.  Database schema is managed by
Alembic: `create_all` only runs when CREATE_SCHEMA_ON_STARTUP is set
(local runs and tests).
"""

import logging
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.controllers.admin_controller import router as admin_router
from app.controllers.auth_controller import router as auth_router
from app.controllers.shop_controller import router as shop_router
from app.core.config import Settings, settings as default_settings
from app.core.database import build_engine, build_session_factory
from app.core.exceptions import Forbidden
from app.models import Base
from app.rbac.access_policy import AccessPolicy
from app.rbac.middleware import AccessControlMiddleware
from app.services.session_manager import SessionManager

logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def build_session_manager(settings: Settings) -> SessionManager:
    absolute = settings.SESSION_ABSOLUTE_TIMEOUT_MINUTES
    return SessionManager(
        max_sessions=settings.MAX_SESSIONS_PER_USER,
        prevent_login_when_full=settings.MAX_SESSIONS_PREVENTS_LOGIN,
        idle_timeout=timedelta(minutes=settings.SESSION_IDLE_TIMEOUT_MINUTES),
        absolute_timeout=timedelta(minutes=absolute) if absolute else None,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.access_policy = AccessPolicy.from_settings(settings)
    app.state.sessions = build_session_manager(settings)

    # ── Middleware & routers ─────────────────────────────────────────
    app.add_middleware(AccessControlMiddleware)

    app.include_router(auth_router)
    app.include_router(shop_router)
    app.include_router(admin_router)

    # ── Error handlers ───────────────────────────────────────────────
    @app.exception_handler(Forbidden)
    async def forbidden_handler(request: Request, exc: Forbidden):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": "Access denied"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        # Logged in full here; the client only gets a generic message.
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Startup / Shutdown ───────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        if settings.CREATE_SCHEMA_ON_STARTUP:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema created.")
        logger.info(
            "Session manager ready (max %d per user, %s when full).",
            settings.MAX_SESSIONS_PER_USER,
            "block" if settings.MAX_SESSIONS_PREVENTS_LOGIN else "evict oldest",
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        app.state.sessions.shutdown()
        await engine.dispose()
        logger.info("Database engine disposed.")

    # ── Health check ─────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
