"""sessionward - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sessionward.api import auth_router, health_router, session_gate
from sessionward.core import settings, setup_logging
from sessionward.core.logging import get_logger

# Import all models to ensure they're registered with Base for Alembic
from sessionward.models import TokenBlacklist, User  # noqa: F401
from sessionward.services.revocation_cleanup import RevocationCleanupService

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    cleanup_service = RevocationCleanupService.get_instance()
    cleanup_service.interval_seconds = settings.revocation_cleanup_interval_seconds
    await cleanup_service.start()

    yield

    logger.info("Shutting down...")
    await cleanup_service.stop()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Cookie-based JWT sessions with server-side revocation",
        version=settings.app_version,
        lifespan=lifespan,
        # Every matched route passes through the access gate
        dependencies=[Depends(session_gate)],
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    # Credentials must be allowed for the browser to send the auth cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
