from __future__ import annotations

from fastapi import Request

from ..core.config import Settings
from ..services.suggestions import SuggestionService


async def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


async def get_suggestion_service(request: Request) -> SuggestionService:
    return request.app.state.suggestions
