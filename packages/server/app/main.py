"""
Noël Famille API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.database import engine
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import (
    FixedWindowRateLimiter,
    LoginRateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from app.api import router as api_router

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Noël Famille",
        description="Family event coordination: events, join codes, polls and reminders.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    login_limiter = FixedWindowRateLimiter(
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )
    app.state.login_limiter = login_limiter

    # Middleware: the last one added is the outermost
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoginRateLimitMiddleware, limiter=login_limiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        configure_logging(settings.log_level, settings.log_format)
        log.info("server.starting", email_configured=settings.email_configured)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("server.shutting_down")
        await engine.dispose()

    return app


app = create_app()
