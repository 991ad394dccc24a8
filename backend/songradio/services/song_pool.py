from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..engine.models import FeatureVector, SongRecord
from ..upstream.client import EndpointTemplate, UpstreamClient, UpstreamError
from ..upstream.endpoints import legacy_search_template, recommendation_templates
from ..upstream.parsing import Recognized, is_song_list, parse_song_list

logger = logging.getLogger("songradio.pool")

_ARTIST_SPLIT_RE = re.compile(r"[,&+]")


@dataclass(frozen=True)
class PoolStrategy:
    """One way of finding candidates; every template is issued as its own request.

    The strategy only starts while the pool holds fewer than ``start_below``
    songs and stops issuing requests once it holds ``stop_at`` (pool size when
    unset).
    """

    name: str
    requests: Callable[[SongRecord, FeatureVector], List[EndpointTemplate]]
    per_request: int
    timeout: float
    delay: float = 0.0
    start_below: Optional[int] = None
    stop_at: Optional[int] = None


@dataclass(slots=True)
class PoolResult:
    songs: List[SongRecord]
    timed_out: bool = False


class CandidatePool:
    def __init__(self, exclude_id: str) -> None:
        self.exclude_id = exclude_id
        self._songs: Dict[str, SongRecord] = {}

    def __len__(self) -> int:
        return len(self._songs)

    def add(self, songs: Iterable[SongRecord]) -> int:
        added = 0
        for song in songs:
            if not song.title or song.id == self.exclude_id or song.id in self._songs:
                continue
            self._songs[song.id] = song
            added += 1
        return added

    def songs(self) -> List[SongRecord]:
        return list(self._songs.values())


def split_artists(artists: str, limit: int = 2) -> List[str]:
    names = [name.strip() for name in _ARTIST_SPLIT_RE.split(artists or "")]
    return [name for name in names if name][:limit]


def _recommendation_requests(target: SongRecord, _features: FeatureVector) -> List[EndpointTemplate]:
    return recommendation_templates(target)


def _artist_requests(target: SongRecord, _features: FeatureVector) -> List[EndpointTemplate]:
    return [legacy_search_template(artist, 20) for artist in split_artists(target.primary_artists)]


def _context_requests(target: SongRecord, features: FeatureVector) -> List[EndpointTemplate]:
    language = target.language or "hindi"
    queries = [f"{features.genre} {language} songs"]
    if features.mood:
        queries.append(f"{features.mood} {language} music")
    queries.append(f"{target.year or '2020'} {language} hits")
    return [legacy_search_template(query, 12) for query in queries[:2]]


def _popular_requests(target: SongRecord, _features: FeatureVector) -> List[EndpointTemplate]:
    return [legacy_search_template(f"top {target.language or 'hindi'} songs 2024", 15)]


def default_strategies() -> List[PoolStrategy]:
    return [
        PoolStrategy("recommendations", _recommendation_requests, per_request=15, timeout=4.0, delay=0.2, stop_at=30),
        PoolStrategy("artist", _artist_requests, per_request=10, timeout=3.0, delay=0.15, start_below=20),
        PoolStrategy("context", _context_requests, per_request=8, timeout=2.5, delay=0.1, start_below=30),
        PoolStrategy("popular", _popular_requests, per_request=10, timeout=2.0, start_below=15, stop_at=20),
    ]


class SongPoolBuilder:
    def __init__(
        self,
        client: UpstreamClient,
        *,
        pool_size: int = 80,
        delay_scale: float = 1.0,
        strategies: Sequence[PoolStrategy] | None = None,
    ) -> None:
        self.client = client
        self.pool_size = pool_size
        self.delay_scale = delay_scale
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    async def _fetch(self, template: EndpointTemplate, strategy: PoolStrategy, target: SongRecord) -> List[SongRecord]:
        response = await self.client.request([template], timeout=strategy.timeout, accept=is_song_list)
        parsed = parse_song_list(response.payload, target.id)
        if not isinstance(parsed, Recognized):
            return []
        songs = [song for song in parsed.songs if song.id != target.id]
        return songs[: strategy.per_request]

    async def _run(self, target: SongRecord, features: FeatureVector, pool: CandidatePool, strategies: Sequence[PoolStrategy]) -> None:
        for strategy in strategies:
            if strategy.start_below is not None and len(pool) >= strategy.start_below:
                continue
            stop_at = strategy.stop_at if strategy.stop_at is not None else self.pool_size
            for template in strategy.requests(target, features):
                if len(pool) >= stop_at:
                    break
                try:
                    songs = await self._fetch(template, strategy, target)
                except UpstreamError as exc:
                    logger.info("Strategy %s request failed for %s: %s", strategy.name, target.id, exc)
                else:
                    added = pool.add(songs)
                    logger.debug("Strategy %s added %s candidates for %s", strategy.name, added, target.id)
                if strategy.delay > 0 and self.delay_scale > 0:
                    await asyncio.sleep(strategy.delay * self.delay_scale)

    async def build(self, target: SongRecord, features: FeatureVector, strategies: Sequence[PoolStrategy] | None = None) -> List[SongRecord]:
        pool = CandidatePool(target.id)
        await self._run(target, features, pool, strategies if strategies is not None else self.strategies)
        logger.info("Candidate pool for %s: %s unique songs", target.id, len(pool))
        return pool.songs()

    async def build_within(
        self,
        target: SongRecord,
        features: FeatureVector,
        timeout: float,
        strategies: Sequence[PoolStrategy] | None = None,
    ) -> PoolResult:
        """Like ``build`` but gives up after ``timeout`` seconds, keeping what was gathered."""
        pool = CandidatePool(target.id)
        try:
            await asyncio.wait_for(
                self._run(target, features, pool, strategies if strategies is not None else self.strategies),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Candidate pool for %s timed out after %ss with %s songs", target.id, timeout, len(pool))
            return PoolResult(songs=pool.songs(), timed_out=True)
        logger.info("Candidate pool for %s: %s unique songs", target.id, len(pool))
        return PoolResult(songs=pool.songs())
