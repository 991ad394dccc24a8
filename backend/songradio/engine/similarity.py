from __future__ import annotations

import re
from typing import FrozenSet

import numpy as np

from .features import CONTINUOUS_FEATURES, continuous_vector
from .models import FeatureVector, SongRecord
from .profiles import SimilarityWeights

_ARTIST_SPLIT_RE = re.compile(r"[,&+]")
_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.ASCII)


def artist_names(artists: str | None) -> FrozenSet[str]:
    if not artists:
        return frozenset()
    names = (_PUNCTUATION_RE.sub("", part.lower().strip()) for part in _ARTIST_SPLIT_RE.split(artists))
    return frozenset(name for name in names if name)


def has_same_artist(artists_a: str | None, artists_b: str | None) -> bool:
    return bool(artist_names(artists_a) & artist_names(artists_b))


def _lead_artist(artists: str) -> str:
    return artists.lower().split(",")[0].strip()


def are_artists_related(weights: SimilarityWeights, artists_a: str | None, artists_b: str | None) -> bool:
    if not artists_a or not artists_b:
        return False
    lead_a = _lead_artist(artists_a)
    lead_b = _lead_artist(artists_b)
    related = weights.related_artists
    return lead_b in related.get(lead_a, ()) or lead_a in related.get(lead_b, ())


def are_genres_related(weights: SimilarityWeights, genre_a: str, genre_b: str) -> bool:
    return genre_b in weights.genre_connections.get(genre_a, ())


def are_eras_adjacent(era_order: tuple[str, ...], era_a: str, era_b: str) -> bool:
    if era_a not in era_order or era_b not in era_order:
        return False
    return abs(era_order.index(era_a) - era_order.index(era_b)) <= 1


class SimilarityScorer:
    def __init__(self, weights: SimilarityWeights, era_order: tuple[str, ...]) -> None:
        self.weights = weights
        self.era_order = era_order
        self.continuous_names = tuple(name for name in CONTINUOUS_FEATURES if name != "popularity" and weights.weight(name) > 0)
        self._continuous_weights = np.array([weights.weight(name) for name in self.continuous_names], dtype=np.float64)

    def similarity(self, a: FeatureVector, b: FeatureVector, song_a: SongRecord, song_b: SongRecord) -> float:
        w = self.weights
        total = 0.0

        if a.genre == b.genre:
            total += w.weight("genre")
        elif are_genres_related(w, a.genre, b.genre):
            total += w.weight("genre") * w.related_genre_credit

        if a.mood is not None and a.mood == b.mood:
            total += w.weight("mood")

        if w.weight("artist"):
            if has_same_artist(song_a.primary_artists, song_b.primary_artists):
                total += w.weight("artist")
            elif are_artists_related(w, song_a.primary_artists, song_b.primary_artists):
                total += w.weight("artist") * w.related_artist_credit

        if a.era == b.era:
            total += w.weight("era")
        elif are_eras_adjacent(self.era_order, a.era, b.era):
            total += w.weight("era") * w.adjacent_era_credit

        if self.continuous_names:
            diff = np.abs(continuous_vector(a, self.continuous_names) - continuous_vector(b, self.continuous_names))
            total += float(np.clip(1.0 - diff, 0.0, None) @ self._continuous_weights)

        if a.language == b.language:
            total += w.weight("language")

        total += b.popularity * w.weight("popularity")

        return min(max(total, 0.0), 1.0)
