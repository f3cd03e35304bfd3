"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from svgnorm.engine.registry import get_registry
from svgnorm.models.responses import HealthResponse, PassInfo

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    specs = get_registry().all()
    return HealthResponse(
        status="ok",
        version="0.1.0",
        passes_registered=len(specs),
        passes=[PassInfo(id=s.id, stage=s.stage.name, description=s.description) for s in specs],
    )
