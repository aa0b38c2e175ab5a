"""
PocketPal - Main Application Entry Point

Personal finance tracking: accounts, movements, recurring expenses and
monthly net-worth snapshots.
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pocketpal.core.config import settings
from pocketpal.core.errors import PocketPalError, pocketpal_error_handler
from pocketpal.core.session import SessionRegistry

import pocketpal.models  # noqa: F401  registers every table with Base.metadata

logger = logging.getLogger(__name__)

# Import module routers
from pocketpal.core.auth_router import router as auth_router
from pocketpal.modules.profiles.router import router as profiles_router
from pocketpal.modules.accounts.router import router as accounts_router
from pocketpal.modules.categories.router import router as categories_router
from pocketpal.modules.movements.router import router as movements_router
from pocketpal.modules.recurring.router import router as recurring_router
from pocketpal.modules.snapshots.router import router as snapshots_router
from pocketpal.modules.dashboard.router import router as dashboard_router
from pocketpal.modules.explore.router import router as explore_router
from pocketpal.modules.export.router import router as export_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Personal finance tracking: accounts, movements and net worth",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Per-login state (auto snapshot done, declined recurring banners)
    app.state.sessions = SessionRegistry()

    app.add_exception_handler(PocketPalError, pocketpal_error_handler)

    # Use ["*"] if CORS_ALLOW_ALL is True (development), otherwise use explicit origins
    cors_origins = ["*"] if settings.CORS_ALLOW_ALL else settings.CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register module routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(profiles_router, prefix="/api/v1/profiles", tags=["Profiles"])
    app.include_router(accounts_router, prefix="/api/v1/accounts", tags=["Accounts"])
    app.include_router(categories_router, prefix="/api/v1/categories", tags=["Categories"])
    app.include_router(movements_router, prefix="/api/v1/movements", tags=["Movements"])
    app.include_router(recurring_router, prefix="/api/v1/recurring", tags=["Recurring"])
    app.include_router(snapshots_router, prefix="/api/v1/snapshots", tags=["Snapshots"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(explore_router, prefix="/api/v1/explore", tags=["Explore"])
    app.include_router(export_router, prefix="/api/v1/export", tags=["Export"])

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - health check."""
        return {
            "application": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    @app.get("/api/health", tags=["Health"])
    async def health_check():
        """API health check endpoint."""
        return {"status": "healthy"}

    @app.on_event("startup")
    async def startup_event():
        """Start the monthly snapshot scheduler when enabled."""
        if not settings.SCHEDULER_ENABLED:
            return
        from pocketpal.core.scheduler import start_scheduler
        start_scheduler()
        logger.info("Application startup complete - snapshot scheduler running")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop background scheduler on app shutdown."""
        from pocketpal.core.scheduler import stop_scheduler
        stop_scheduler()

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
    uvicorn.run("pocketpal.main:app", host="0.0.0.0", port=8000, reload=True)
