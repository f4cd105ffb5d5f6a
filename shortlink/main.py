"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- API routes
- Middleware (request logging)
- Process-wide admission collaborators (origin guard, rate limiter, CAPTCHA client)
- The database engine and session factory for the configured DATABASE_URL
- Application metadata

Design Decisions:
- App factory: tests build isolated apps with their own settings and
  collaborators; `app` below is what uvicorn serves
- CORS is answered by the create endpoint itself through OriginGuard, so an
  untrusted caller never receives an allow-origin header
"""

import logging
from typing import Optional

from fastapi import FastAPI

from shortlink.api import endpoints
from shortlink.core.origin import OriginGuard
from shortlink.core.rate_limit import RateLimiter, build_rate_limiter
from shortlink.core.setting import Settings, settings as default_settings
from shortlink.db.session import build_engine, init_db, make_session_maker
from shortlink.middleware.logging import add_logging_middleware
from shortlink.services.captcha import CaptchaValidator

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Settings] = None,
    rate_limiter: Optional[RateLimiter] = None,
    captcha: Optional[CaptchaValidator] = None,
) -> FastAPI:
    """
    Build and configure a FastAPI app.

    Args:
        config: Settings to use (defaults to the environment-loaded settings)
        rate_limiter: Rate limiter override (defaults to build_rate_limiter(config))
        captcha: CAPTCHA validator override (defaults to one built from config)

    Returns:
        Configured FastAPI application
    """
    config = config or default_settings

    if not logging.getLogger().handlers:
        logging.basicConfig(level=config.LOG_LEVEL.upper())

    app = FastAPI(
        title="Short-Link Service",
        description="Short keys mapped to allowlisted destination URLs",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = config
    app.state.engine = build_engine(config.DATABASE_URL)
    app.state.session_maker = make_session_maker(app.state.engine)
    app.state.origin_guard = OriginGuard(config.TRUSTED_ORIGINS)
    app.state.rate_limiter = rate_limiter or build_rate_limiter(config)
    app.state.captcha = captcha or CaptchaValidator(
        secret=config.CAPTCHA_SECRET_KEY,
        verify_url=config.CAPTCHA_VERIFY_URL,
        timeout=config.CAPTCHA_TIMEOUT_SECONDS,
    )

    if not config.TRUSTED_ORIGINS:
        logger.warning("TRUSTED_ORIGINS is empty: every create request will be rejected")
    if not config.API_KEYS:
        logger.warning("API_KEYS is empty: every create request will be rejected")

    add_logging_middleware(app)

    # Health endpoints defined before router to match before catch-all route
    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint for health checks."""
        return {
            "message": "Short-Link Service",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy"}

    app.include_router(endpoints.router, tags=["Short Links"])

    @app.on_event("startup")
    async def startup_event():
        """Create the links table if migrations haven't."""
        await init_db(app.state.engine)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close pooled database connections."""
        await app.state.engine.dispose()

    return app


app = create_app()
