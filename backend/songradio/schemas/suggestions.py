from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SongItem(ApiModel):
    id: str
    title: str
    subtitle: str = ""
    image: str = ""
    duration: str = ""
    url: str = ""
    primary_artists: str = ""
    featured_artists: str = ""
    album: str = ""
    year: str = ""
    play_count: str = ""
    language: str = ""
    has_lyrics: bool = False


class SuggestionItem(SongItem):
    ai_score: int = Field(..., ge=0, le=100)
    similarity: int = Field(..., ge=0, le=100)
    rank: int = Field(..., ge=1)
    match_reason: str
    relevance_factors: List[str] = []


class TargetSong(ApiModel):
    id: str
    title: str
    artist: str
    album: str
    year: str
    language: str
    genre: str
    mood: Optional[str] = None


class Performance(ApiModel):
    total_time: str
    candidate_pool: int
    avg_relevance_score: int = 0
    timed_out: bool = False
    fast_mode: bool = False


class SuggestionsResponse(ApiModel):
    success: bool = True
    song_id: str
    target_song: TargetSong
    results: int
    data: List[SuggestionItem] = []
    algorithm: str
    performance: Performance
    cached: bool = False
    cache_age: Optional[str] = None


class SearchResponse(ApiModel):
    success: bool = True
    query: str
    results: int
    data: List[SongItem] = []
    message: str = ""


class ClearCacheResponse(ApiModel):
    success: bool = True
    message: str
    cleared: Dict[str, int] = {}


class HealthResponse(ApiModel):
    ok: bool = True
    status: str = "OK"
    version: str
    engine_profile: str
    cache_backend: str
