from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List

from .models import UNKNOWN_ALBUM, FeatureVector, ScoredCandidate, SongRecord
from .profiles import RankingRules
from .similarity import has_same_artist

logger = logging.getLogger("songradio.ranking")

_BRACKETS_RE = re.compile(r"[()\[\]]")
_QUALIFIERS_RE = re.compile(r"remix|version|unplugged|acoustic|live")
_LOOSE_QUALIFIERS_RE = re.compile(r"remix|version|unplugged|acoustic|live|remastered")
_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.ASCII)


def _clean_title(title: str, *, loose: bool) -> str:
    cleaned = _BRACKETS_RE.sub("", title.lower())
    if loose:
        cleaned = _LOOSE_QUALIFIERS_RE.sub("", cleaned)
        cleaned = _PUNCTUATION_RE.sub("", cleaned)
    else:
        cleaned = _QUALIFIERS_RE.sub("", cleaned)
    return cleaned.strip()


def are_titles_near_duplicate(title_a: str | None, title_b: str | None, *, loose: bool = True) -> bool:
    if not title_a or not title_b:
        return False
    clean_a = _clean_title(title_a, loose=loose)
    clean_b = _clean_title(title_b, loose=loose)
    if clean_a == clean_b:
        return True
    if not loose:
        return False
    return len(clean_a) > 3 and len(clean_b) > 3 and (clean_a in clean_b or clean_b in clean_a)


def _has_duration_gap(target: SongRecord, candidate: SongRecord, gap: int) -> bool:
    target_seconds = target.duration_seconds
    candidate_seconds = candidate.duration_seconds
    if not target_seconds or not candidate_seconds or target_seconds < 0 or candidate_seconds < 0:
        return False
    return abs(target_seconds - candidate_seconds) > gap


def apply_adjustments(rules: RankingRules, target: SongRecord, candidate: SongRecord, similarity: float) -> tuple[float, tuple[str, ...]]:
    score = similarity
    applied: List[str] = []

    if rules.same_artist_boost != 1.0 and has_same_artist(target.primary_artists, candidate.primary_artists):
        score *= rules.same_artist_boost
        applied.append("same_artist")

    if rules.same_album_boost != 1.0 and target.album == candidate.album and target.album != UNKNOWN_ALBUM:
        score *= rules.same_album_boost
        applied.append("same_album")

    if rules.popular_play_count is not None and candidate.play_count_value > rules.popular_play_count:
        score *= rules.popular_boost
        applied.append("popular")

    if rules.recent_year is not None:
        year = candidate.year_value
        if year is not None and year >= rules.recent_year:
            score *= rules.recent_boost
            applied.append("recent")

    if rules.duplicate_title_penalty != 1.0 and are_titles_near_duplicate(target.title, candidate.title, loose=rules.loose_title_match):
        score *= rules.duplicate_title_penalty
        applied.append("duplicate_title")

    if rules.duration_gap_seconds is not None and _has_duration_gap(target, candidate, rules.duration_gap_seconds):
        score *= rules.duration_gap_penalty
        applied.append("duration_gap")

    return score, tuple(applied)


def rank_candidates(
    target: SongRecord,
    target_features: FeatureVector,
    candidates: Iterable[SongRecord],
    *,
    rules: RankingRules,
    extract: Callable[[SongRecord], FeatureVector],
    similarity: Callable[[FeatureVector, FeatureVector, SongRecord, SongRecord], float],
) -> List[ScoredCandidate]:
    scored: List[ScoredCandidate] = []
    for song in candidates:
        if song.id == target.id:
            continue
        features = extract(song)
        base = similarity(target_features, features, target, song)
        score, applied = apply_adjustments(rules, target, song, base)
        if rules.score_floor is not None and not score > rules.score_floor:
            continue
        scored.append(ScoredCandidate(song=song, features=features, similarity=base, score=score, adjustments=applied))

    # sorted() is stable, equal scores keep candidate order
    ranked = sorted(scored, key=lambda item: item.score, reverse=True)
    if ranked:
        logger.debug(
            "Top scores: %s",
            ", ".join(f"{item.score:.3f} ({item.song.title[:20]})" for item in ranked[:5]),
        )
    return ranked
