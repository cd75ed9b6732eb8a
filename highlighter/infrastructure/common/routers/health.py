from fastapi import APIRouter
from pydantic import BaseModel

from highlighter import __version__
from highlighter.core import container

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    store_open: bool


@router.get("/health")
async def health_check() -> HealthResponse:
    """Liveness check; reports whether the document store is open."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        store_open=container.document_store().is_open,
    )
