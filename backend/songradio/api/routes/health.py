from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...core.config import Settings
from ...schemas.suggestions import HealthResponse
from ..deps import get_settings_dep

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, response_model_by_alias=True)
async def get_health(request: Request, settings: Settings = Depends(get_settings_dep)) -> HealthResponse:
    return HealthResponse(
        version=request.app.version,
        engine_profile=settings.engine_profile,
        cache_backend=settings.cache_backend,
    )
