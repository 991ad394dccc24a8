from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional

from ..cache.ttl import TTLCache
from ..core.config import Settings
from ..core.errors import NoSearchResults, NoSuggestions, SongNotFound
from ..engine.models import ScoredCandidate, SongRecord
from ..engine.recommender import RecommendationEngine
from ..schemas.suggestions import (
    Performance,
    SongItem,
    SuggestionItem,
    SuggestionsResponse,
    TargetSong,
)
from ..upstream.client import SINGLE_ATTEMPT, UpstreamClient, UpstreamError
from ..upstream.endpoints import (
    legacy_search_template,
    rest_search_template,
    rest_song_template,
    song_detail_templates,
)
from ..upstream.parsing import Recognized, parse_song_details, parse_song_list
from .song_pool import SongPoolBuilder

logger = logging.getLogger("songradio.suggestions")

DETAILS_TIMEOUT = 4.0
SEARCH_TIMEOUT = 3.0
FAST_MODE_MS = 3000


def _percent(value: float) -> int:
    # half-up rounding, clamped into the 0..100 range the API promises
    return min(100, max(0, int(math.floor(value * 100 + 0.5))))


def match_reason(score: float) -> str:
    if score > 0.8:
        return "Highly Similar"
    if score > 0.6:
        return "Very Similar"
    if score > 0.4:
        return "Similar"
    return "Related"


def song_to_item(song: SongRecord) -> SongItem:
    return SongItem(
        id=song.id,
        title=song.title,
        subtitle=song.primary_artists,
        image=song.image,
        duration=song.duration,
        url=song.url,
        primary_artists=song.primary_artists,
        featured_artists=song.featured_artists,
        album=song.album,
        year=song.year,
        play_count=song.play_count,
        language=song.language,
        has_lyrics=song.has_lyrics,
    )


def _has_songs(payload: Any) -> bool:
    parsed = parse_song_list(payload)
    return isinstance(parsed, Recognized) and bool(parsed.songs)


class SuggestionService:
    def __init__(
        self,
        client: UpstreamClient,
        engine: RecommendationEngine,
        settings: Settings,
        *,
        song_cache: TTLCache,
        response_cache: TTLCache,
        pool_builder: Optional[SongPoolBuilder] = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.client = client
        self.engine = engine
        self.settings = settings
        self.song_cache = song_cache
        self.response_cache = response_cache
        self.pool_builder = pool_builder or SongPoolBuilder(
            client,
            pool_size=settings.candidate_pool_size,
            delay_scale=settings.pool_delay_scale,
        )
        self.timer = timer

    async def get_song(self, song_id: str) -> SongRecord:
        cached = await self.song_cache.get(song_id)
        if cached is not None:
            logger.debug("Using cached song details for %s", song_id)
            return SongRecord.from_dict(cached)
        song = await self._fetch_song(song_id)
        await self.song_cache.set(song_id, song.to_dict())
        return song

    async def _fetch_song(self, song_id: str) -> SongRecord:
        def has_details(payload: Any) -> bool:
            return isinstance(parse_song_details(payload, song_id), SongRecord)

        attempts = (
            (
                "backup",
                lambda: self.client.request(
                    [rest_song_template(song_id)],
                    self.settings.backup_api_bases,
                    timeout=self.settings.backup_timeout_seconds,
                    accept=has_details,
                    retry_policy=SINGLE_ATTEMPT,
                ),
            ),
            (
                "legacy",
                lambda: self.client.request(song_detail_templates(song_id), timeout=DETAILS_TIMEOUT, accept=has_details),
            ),
        )
        for source, call in attempts:
            try:
                response = await call()
            except UpstreamError as exc:
                logger.info("Song details from %s APIs failed for %s: %s", source, song_id, exc)
                continue
            song = parse_song_details(response.payload, song_id)
            if isinstance(song, SongRecord):
                logger.info("Got song details for %s from %s", song_id, response.base_url)
                return song

        # last resort: the legacy search API sometimes knows ids the detail calls do not
        try:
            response = await self.client.request(
                [legacy_search_template(song_id, 1)],
                timeout=SEARCH_TIMEOUT,
                accept=_has_songs,
            )
        except UpstreamError as exc:
            logger.info("Search fallback failed for %s: %s", song_id, exc)
        else:
            parsed = parse_song_list(response.payload)
            if isinstance(parsed, Recognized) and parsed.songs:
                return parsed.songs[0]

        raise SongNotFound(
            "Unable to fetch song details from any source",
            suggestion="Please verify the song ID is correct",
        )

    async def search(self, query: str, limit: int) -> List[SongRecord]:
        songs: List[SongRecord] = []
        try:
            response = await self.client.request(
                [rest_search_template(query, limit)],
                self.settings.backup_api_bases[:2],
                timeout=self.settings.backup_timeout_seconds,
                accept=_has_songs,
                retry_policy=SINGLE_ATTEMPT,
            )
        except UpstreamError as exc:
            logger.info("Backup search failed for %r: %s", query, exc)
        else:
            parsed = parse_song_list(response.payload)
            if isinstance(parsed, Recognized):
                songs = parsed.songs

        if not songs:
            try:
                response = await self.client.request(
                    [legacy_search_template(query, limit)],
                    timeout=SEARCH_TIMEOUT,
                    accept=_has_songs,
                )
            except UpstreamError as exc:
                logger.info("Legacy search failed for %r: %s", query, exc)
            else:
                parsed = parse_song_list(response.payload)
                if isinstance(parsed, Recognized):
                    songs = parsed.songs

        if not songs:
            raise NoSearchResults(f'No results found for "{query}". Try different keywords.')
        return songs[:limit]

    async def suggest(self, song_id: str, limit: int) -> SuggestionsResponse:
        started = self.timer()
        cache_key = f"{song_id}_{limit}"
        entry = await self.response_cache.get_entry(cache_key)
        if entry is not None:
            logger.info("Serving cached suggestions for %s", song_id)
            response = SuggestionsResponse.model_validate(entry.payload)
            return response.model_copy(update={"cached": True, "cache_age": f"{round(self.response_cache.age(entry))}s"})

        target = await self.get_song(song_id)
        target_features = self.engine.extract(target)
        logger.info("Building suggestions for %s (%s by %s)", song_id, target.title, target.primary_artists)

        pool = await self.pool_builder.build_within(
            target,
            target_features,
            timeout=self.settings.suggestion_timeout_seconds,
        )
        if not pool.songs:
            raise NoSuggestions(
                "No suggestions could be generated for this song at the moment",
                suggestion=(
                    "This might be due to the song being very new, rare, or the external APIs being "
                    "temporarily unavailable. Try again later."
                ),
            )

        # diversity caps follow the requested limit
        selected = self.engine.recommend(target, pool.songs, limit=limit)
        if not selected:
            raise NoSuggestions(
                "None of the candidate songs were similar enough to suggest",
                suggestion="Try another song or retry later for a fresh candidate pool.",
            )

        elapsed_ms = int((self.timer() - started) * 1000)
        response = SuggestionsResponse(
            success=True,
            song_id=song_id,
            target_song=TargetSong(
                id=target.id,
                title=target.title,
                artist=target.primary_artists,
                album=target.album,
                year=target.year,
                language=target.language,
                genre=target_features.genre,
                mood=target_features.mood,
            ),
            results=len(selected),
            data=[self._to_item(target, candidate, rank) for rank, candidate in enumerate(selected, start=1)],
            algorithm=self.engine.algorithm,
            performance=Performance(
                total_time=f"{elapsed_ms}ms",
                candidate_pool=len(pool.songs),
                avg_relevance_score=_percent(sum(item.score for item in selected) / len(selected)),
                timed_out=pool.timed_out,
                fast_mode=elapsed_ms < FAST_MODE_MS,
            ),
        )
        await self.response_cache.set(cache_key, response.model_dump(mode="json"))
        logger.info("Generated %s suggestions for %s in %sms", len(selected), song_id, elapsed_ms)
        return response

    def _to_item(self, target: SongRecord, candidate: ScoredCandidate, rank: int) -> SuggestionItem:
        base = song_to_item(candidate.song)
        return SuggestionItem(
            **base.model_dump(),
            ai_score=_percent(candidate.score),
            similarity=_percent(candidate.similarity),
            rank=rank,
            match_reason=match_reason(candidate.score),
            relevance_factors=self.engine.relevance_factors(target, candidate.song),
        )

    async def clear_caches(self) -> Dict[str, int]:
        return {
            "songCache": await self.song_cache.clear(),
            "suggestionCache": await self.response_cache.clear(),
        }
