"""API routers."""

from .health import create_health_router
from .updates import create_updates_router

__all__ = ["create_health_router", "create_updates_router"]
