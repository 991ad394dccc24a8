from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.config import Settings
from ...core.errors import BadRequest
from ...schemas.suggestions import ClearCacheResponse, SearchResponse, SuggestionsResponse
from ...services.suggestions import SuggestionService, song_to_item
from ..deps import get_settings_dep, get_suggestion_service

router = APIRouter(prefix="/api", tags=["suggestions"])


def _clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    if limit is None:
        return default
    return max(1, min(limit, maximum))


@router.get("/suggestions/{song_id}", response_model=SuggestionsResponse, response_model_by_alias=True)
async def get_suggestions(
    song_id: str,
    limit: Optional[int] = Query(default=None),
    *,
    service: SuggestionService = Depends(get_suggestion_service),
    settings: Settings = Depends(get_settings_dep),
) -> SuggestionsResponse:
    song_id = song_id.strip()
    if not song_id:
        raise BadRequest("Song ID is required")
    return await service.suggest(song_id, _clamp_limit(limit, settings.default_limit, settings.max_limit))


@router.get("/search", response_model=SearchResponse, response_model_by_alias=True)
async def search_songs(
    q: str = Query(default=""),
    limit: Optional[int] = Query(default=None),
    *,
    service: SuggestionService = Depends(get_suggestion_service),
    settings: Settings = Depends(get_settings_dep),
) -> SearchResponse:
    query = q.strip()
    if not query:
        raise BadRequest("Search query is required", suggestion="Pass the query as ?q=...")
    songs = await service.search(query, _clamp_limit(limit, settings.search_default_limit, settings.max_limit))
    return SearchResponse(
        query=query,
        results=len(songs),
        data=[song_to_item(song) for song in songs],
        message=f"Found {len(songs)} songs",
    )


@router.post("/clear-cache", response_model=ClearCacheResponse, response_model_by_alias=True)
async def clear_cache(service: SuggestionService = Depends(get_suggestion_service)) -> ClearCacheResponse:
    cleared = await service.clear_caches()
    return ClearCacheResponse(message="Cache cleared successfully", cleared=cleared)
