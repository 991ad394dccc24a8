from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Sequence, Set

from .models import ScoredCandidate
from .profiles import DiversityRules

logger = logging.getLogger("songradio.diversity")


def dimension_key(candidate: ScoredCandidate, dimension: str) -> str:
    if dimension == "artist":
        return (candidate.song.primary_artists or "unknown").lower()
    if dimension == "album":
        return candidate.song.album or "unknown"
    if dimension == "genre":
        return candidate.features.genre or "unknown"
    if dimension == "mood":
        return candidate.features.mood or "unknown"
    raise ValueError(f"unsupported diversity dimension {dimension!r}")


def diversify(ranked: Sequence[ScoredCandidate], limit: int, rules: DiversityRules) -> List[ScoredCandidate]:
    """Pick up to ``limit`` candidates so no artist/genre/mood dominates.

    Pass one enforces every cap. When that leaves fewer than
    ``min(minimum_results, limit)`` picks, pass two re-scans with only a relaxed
    per-artist cap and pass three takes whatever is left in score order.
    The selection is returned in ranked order whichever pass admitted it.
    """
    if limit <= 0:
        return []

    result: List[ScoredCandidate] = []
    accepted: Set[str] = set()
    caps = {cap.dimension: cap.limit_for(limit) for cap in rules.caps}
    counters: Dict[str, Counter[str]] = {dimension: Counter() for dimension in caps}

    for candidate in ranked:
        if len(result) >= limit:
            break
        keys = {dimension: dimension_key(candidate, dimension) for dimension in caps}
        if all(counters[dimension][key] < caps[dimension] for dimension, key in keys.items()):
            result.append(candidate)
            accepted.add(candidate.id)
            for dimension, key in keys.items():
                counters[dimension][key] += 1

    constrained = len(result)
    target = rules.target_count(limit)

    if len(result) < target and len(ranked) > len(result):
        relaxed_cap = rules.relaxed_artist_cap(limit)
        artist_counts: Counter[str] = Counter(dimension_key(item, "artist") for item in result)
        for candidate in ranked:
            if len(result) >= limit:
                break
            if candidate.id in accepted:
                continue
            artist = dimension_key(candidate, "artist")
            if artist_counts[artist] < relaxed_cap:
                result.append(candidate)
                accepted.add(candidate.id)
                artist_counts[artist] += 1

    relaxed = len(result) - constrained

    if len(result) < target and len(ranked) > len(result):
        for candidate in ranked:
            if len(result) >= limit:
                break
            if candidate.id not in accepted:
                result.append(candidate)
                accepted.add(candidate.id)

    position = {item.id: index for index, item in enumerate(ranked)}
    result.sort(key=lambda item: position[item.id])

    logger.debug(
        "Diversity applied: %s ranked -> %s selected (constrained=%s relaxed=%s filled=%s)",
        len(ranked),
        len(result),
        constrained,
        relaxed,
        len(result) - constrained - relaxed,
    )
    return result
