from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .features import ADVANCED_TABLES, SIMPLE_TABLES, HeuristicTables


@dataclass(frozen=True)
class SimilarityWeights:
    weights: Mapping[str, float]
    related_genre_credit: float
    related_artist_credit: float = 0.4
    adjacent_era_credit: float = 0.7
    genre_connections: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    related_artists: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def weight(self, name: str) -> float:
        return float(self.weights.get(name, 0.0))


@dataclass(frozen=True)
class RankingRules:
    same_artist_boost: float = 1.0
    same_album_boost: float = 1.0
    popular_play_count: Optional[int] = None
    popular_boost: float = 1.0
    recent_year: Optional[int] = None
    recent_boost: float = 1.0
    duplicate_title_penalty: float = 1.0
    # loose matching also strips punctuation and treats containment as duplicate
    loose_title_match: bool = False
    duration_gap_seconds: Optional[int] = None
    duration_gap_penalty: float = 1.0
    score_floor: Optional[float] = None


@dataclass(frozen=True)
class DiversityCap:
    dimension: str
    divisor: int
    minimum: int = 0

    def limit_for(self, limit: int) -> int:
        return max(self.minimum, math.ceil(limit / self.divisor))


@dataclass(frozen=True)
class DiversityRules:
    caps: Tuple[DiversityCap, ...]
    relaxed_artist_divisor: int = 2
    minimum_results: int = 15

    def relaxed_artist_cap(self, limit: int) -> int:
        return math.ceil(limit / self.relaxed_artist_divisor)

    def target_count(self, limit: int) -> int:
        return min(self.minimum_results, limit)


@dataclass(frozen=True)
class EngineProfile:
    name: str
    algorithm: str
    tables: HeuristicTables
    similarity: SimilarityWeights
    ranking: RankingRules
    diversity: DiversityRules


ADVANCED_PROFILE = EngineProfile(
    name="advanced",
    algorithm="Song-Specific Radio Engine (advanced)",
    tables=ADVANCED_TABLES,
    similarity=SimilarityWeights(
        weights={
            "genre": 0.25,
            "mood": 0.2,
            "artist": 0.15,
            "era": 0.1,
            "tempo": 0.08,
            "energy": 0.08,
            "valence": 0.06,
            "language": 0.05,
            "popularity": 0.03,
        },
        related_genre_credit=0.6,
        genre_connections={
            "bollywood": ("pop", "romantic", "dance", "classical"),
            "pop": ("bollywood", "electronic", "dance", "rock"),
            "rock": ("metal", "alternative", "pop", "indie"),
            "classical": ("instrumental", "devotional", "bollywood"),
            "romantic": ("bollywood", "pop", "sufi", "ghazal"),
            "dance": ("electronic", "pop", "bollywood", "punjabi"),
            "sufi": ("romantic", "classical", "ghazal", "devotional"),
            "punjabi": ("dance", "bollywood", "pop"),
            "electronic": ("dance", "pop", "techno", "house"),
            "devotional": ("classical", "sufi", "bollywood"),
        },
        related_artists={
            "arijit singh": ("shreya ghoshal", "armaan malik", "rahat fateh ali khan"),
            "shreya ghoshal": ("arijit singh", "sunidhi chauhan", "alka yagnik"),
            "honey singh": ("badshah", "raftaar", "divine"),
            "atif aslam": ("rahat fateh ali khan", "arijit singh"),
            "sonu nigam": ("udit narayan", "kumar sanu", "abhijeet"),
        },
    ),
    ranking=RankingRules(
        same_artist_boost=1.4,
        same_album_boost=1.2,
        popular_play_count=5_000_000,
        popular_boost=1.05,
        duplicate_title_penalty=0.1,
        loose_title_match=True,
        duration_gap_seconds=180,
        duration_gap_penalty=0.8,
        score_floor=0.1,
    ),
    diversity=DiversityRules(
        caps=(
            DiversityCap("artist", divisor=5, minimum=2),
            DiversityCap("genre", divisor=2),
            DiversityCap("mood", divisor=3),
        ),
    ),
)

SIMPLE_PROFILE = EngineProfile(
    name="simple",
    algorithm="Song Radio Engine (simple)",
    tables=SIMPLE_TABLES,
    similarity=SimilarityWeights(
        weights={
            "genre": 0.3,
            "tempo": 0.15,
            "energy": 0.15,
            "danceability": 0.1,
            "valence": 0.1,
            "acousticness": 0.05,
            "era": 0.1,
            "language": 0.05,
        },
        related_genre_credit=0.5,
        genre_connections={
            "bollywood": ("pop", "classical", "devotional", "sufi"),
            "pop": ("bollywood", "electronic", "rock"),
            "rock": ("pop", "electronic", "metal"),
            "classical": ("bollywood", "devotional", "sufi"),
            "electronic": ("pop", "rock", "dance"),
            "devotional": ("classical", "bollywood", "sufi"),
            "sufi": ("classical", "devotional", "bollywood"),
            "punjabi": ("bollywood", "pop"),
            "folk": ("classical", "bollywood"),
        },
    ),
    ranking=RankingRules(
        popular_play_count=1_000_000,
        popular_boost=1.1,
        recent_year=2020,
        recent_boost=1.05,
        duplicate_title_penalty=0.3,
    ),
    diversity=DiversityRules(
        caps=(
            DiversityCap("artist", divisor=3, minimum=3),
            DiversityCap("album", divisor=5, minimum=2),
        ),
    ),
)

PROFILES: Dict[str, EngineProfile] = {
    ADVANCED_PROFILE.name: ADVANCED_PROFILE,
    SIMPLE_PROFILE.name: SIMPLE_PROFILE,
}


def get_profile(name: str) -> EngineProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"unknown engine profile {name!r}") from None
