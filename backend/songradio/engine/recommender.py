from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .diversity import diversify
from .features import FeatureHeuristics, KeywordHeuristics, extract_features
from .models import FeatureVector, ScoredCandidate, SongRecord
from .profiles import ADVANCED_PROFILE, EngineProfile
from .ranking import rank_candidates
from .similarity import SimilarityScorer, has_same_artist

logger = logging.getLogger("songradio.engine")


class RecommendationEngine:
    """Scores candidate songs against a target and picks a diverse subset.

    Everything profile-specific (keyword tables, weights, multipliers and caps)
    comes from ``profile``; ``heuristics`` may replace the keyword classifiers.
    """

    def __init__(self, profile: EngineProfile = ADVANCED_PROFILE, heuristics: Optional[FeatureHeuristics] = None) -> None:
        self.profile = profile
        self.heuristics: FeatureHeuristics = heuristics or KeywordHeuristics(profile.tables)
        self.scorer = SimilarityScorer(profile.similarity, profile.tables.era_order)

    @property
    def algorithm(self) -> str:
        return self.profile.algorithm

    def extract(self, song: SongRecord) -> FeatureVector:
        return extract_features(song, self.heuristics)

    def similarity(self, a: FeatureVector, b: FeatureVector, song_a: SongRecord, song_b: SongRecord) -> float:
        return self.scorer.similarity(a, b, song_a, song_b)

    def rank(self, target: SongRecord, candidates: Sequence[SongRecord]) -> List[ScoredCandidate]:
        target_features = self.extract(target)
        logger.debug(
            "Target features for %s: %s/%s/%s",
            target.id,
            target_features.genre,
            target_features.mood,
            target_features.era,
        )
        return rank_candidates(
            target,
            target_features,
            candidates,
            rules=self.profile.ranking,
            extract=self.extract,
            similarity=self.similarity,
        )

    def diversify(self, ranked: Sequence[ScoredCandidate], limit: int) -> List[ScoredCandidate]:
        return diversify(ranked, limit, self.profile.diversity)

    def recommend(self, target: SongRecord, candidates: Sequence[SongRecord], limit: int = 20) -> List[ScoredCandidate]:
        ranked = self.rank(target, candidates)
        selected = self.diversify(ranked, limit)
        logger.info(
            "Selected %s of %s ranked candidates for %s",
            len(selected),
            len(ranked),
            target.id,
        )
        return selected[:limit]

    def relevance_factors(self, target: SongRecord, candidate: SongRecord) -> List[str]:
        factors: List[str] = []
        if has_same_artist(target.primary_artists, candidate.primary_artists):
            factors.append("Same Artist")
        if target.album == candidate.album:
            factors.append("Same Album")
        target_features = self.extract(target)
        candidate_features = self.extract(candidate)
        if target_features.genre == candidate_features.genre:
            factors.append("Same Genre")
        if target_features.mood is not None and target_features.mood == candidate_features.mood:
            factors.append("Same Mood")
        if target_features.language == candidate_features.language:
            factors.append("Same Language")
        if target_features.era == candidate_features.era:
            factors.append("Same Era")
        return factors
