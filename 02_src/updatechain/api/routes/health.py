"""Health check route."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...app import Application


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    session_backend: str


def create_health_router(app: Application) -> APIRouter:
    """Create health router."""
    router = APIRouter(tags=["health"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> dict:
        """Report whether the application is running."""
        try:
            backend = type(app.session_manager.backend).__name__
        except RuntimeError:
            return {"status": "starting", "session_backend": "none"}
        return {"status": "ok", "session_backend": backend}

    return router
