"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import Application
from .routes import create_health_router, create_updates_router


def create_fastapi_app(application: Application) -> FastAPI:
    """Create and configure FastAPI application around an Application."""

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Manage application lifespan."""
        # Startup
        await application.start()
        yield
        # Shutdown
        await application.stop()

    fastapi_app = FastAPI(
        title="updatechain",
        description="Webhook ingress for the update handler pipeline",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Include routers
    fastapi_app.include_router(create_updates_router(application))
    fastapi_app.include_router(create_health_router(application))

    return fastapi_app
