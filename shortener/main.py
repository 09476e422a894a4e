"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- Database engine and session factory
- The process-wide token bucket rate limiter
- API routes, exception handlers and middleware (logging, CORS)
- Application metadata

Design Decisions:
- Application factory: every shared resource is created in create_app()
  and stored on app.state, tests build isolated apps with their own settings
- Module-level `app` for `uvicorn shortener.main:app`
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortener.api import endpoints
from shortener.core.exceptions import RateLimitExceededError
from shortener.core.rate_limit import TokenBucket
from shortener.core.setting import Settings, settings as default_settings
from shortener.db.session import build_engine, build_session_maker, init_db
from shortener.middleware.logging import add_logging_middleware, configure_logging

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query parameters are client errors (400)."""
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        message = f"invalid value for {location}: {errors[0].get('msg')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": str(exc)}
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a fully wired application.

    Args:
        settings: Configuration to use, defaults to the environment settings

    Returns:
        FastAPI application
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.AUTO_CREATE_TABLES:
            await init_db(engine)
        logger.info(
            f"URL shortener started: address={settings.DOMAIN}:{settings.PORT} "
            f"rate_limit={settings.MAX_REQUEST} tokens/{settings.REFILL_RATE}s"
        )
        yield
        await engine.dispose()
        logger.info("URL shortener stopped")

    # Title and description are used in auto-generated API documentation
    app = FastAPI(
        title="URL Shortener Service",
        description="Shortens URLs, redirects visitors and tracks visits",
        version="1.0.0",
        docs_url="/docs",  # Swagger UI documentation
        redoc_url="/redoc",  # ReDoc documentation
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = build_session_maker(engine)
    app.state.rate_limiter = TokenBucket(settings.MAX_REQUEST, settings.REFILL_RATE)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exception_handler)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[f"http://{settings.DOMAIN}:{settings.PORT}"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    # Health endpoint defined before router to match before catch-all route
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring, not rate limited."""
        return {"status": "healthy"}

    app.include_router(endpoints.router)

    return app


app = create_app()
