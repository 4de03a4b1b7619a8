"""
FastAPI application factory and server setup.

This module creates and configures the FastAPI application with:
- Request logging
- Routing error translation
- Rule store and provider registry wiring
- Route registration
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from vibemate import __version__
from vibemate.router.errors import (
    InvalidPattern,
    InvalidReorder,
    LockedRuleViolation,
    NamespaceCollision,
    NoProviderAvailable,
    NotFound,
    RoutingError,
    StorageError,
    UnknownProvider,
)
from vibemate.server.config import get_settings
from vibemate.server.context import AppContext
from vibemate.server.middleware import RequestLoggingMiddleware
from vibemate.server.routes import admin, health, rules

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[RoutingError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    LockedRuleViolation: status.HTTP_409_CONFLICT,
    NamespaceCollision: status.HTTP_409_CONFLICT,
    InvalidPattern: 422,
    InvalidReorder: 422,
    UnknownProvider: 422,
    NoProviderAvailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_status(error: RoutingError) -> int:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    """Translate rule engine errors into JSON error responses."""
    code = error_status(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=code,
        content={"error": {"type": exc.code, "message": str(exc)}},
    )


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        context: Prebuilt application context; when omitted one is built from
            settings at startup and closed at shutdown

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = context is None
        if owned:
            app.state.context = await AppContext.from_settings(settings)
        logger.info(f"Server starting on {settings.server.host}:{settings.server.port}")

        yield

        logger.info("Shutting down...")
        if owned:
            await app.state.context.close()

    app = FastAPI(
        title="vibemate - Routing Rules",
        description="Manage how API traffic is routed to providers",
        version=__version__,
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    if context is not None:
        app.state.context = context

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(RoutingError, routing_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])
    app.include_router(rules.router, prefix="/admin/rules", tags=["Routing Rules"])

    @app.get("/")
    async def root() -> dict:  # pyright: ignore[reportUnusedFunction]
        """Root endpoint with basic info."""
        return {
            "name": "vibemate",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.server.docs_enabled else None,
        }

    return app
