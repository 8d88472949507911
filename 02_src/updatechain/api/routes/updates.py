"""Update ingress routes."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...app import IApplication
from ...models import Update


class UpdateResponse(BaseModel):
    """Response model for a dispatched update."""

    update_id: int
    status: str
    result: str | None = None


def create_updates_router(app: IApplication) -> APIRouter:
    """Create updates router."""
    router = APIRouter(tags=["updates"])

    @router.post("/updates", response_model=UpdateResponse)
    async def receive_update(update: Update) -> dict:
        """Dispatch one update through the handler tree."""
        result = await app.dispatch(update)
        if result is None:
            return {"update_id": update.id, "status": "error"}
        return {"update_id": update.id, "status": "ok", "result": result.value}

    return router
