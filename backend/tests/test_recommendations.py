import math
from collections import Counter

import pytest

from songradio.engine.diversity import dimension_key
from songradio.engine.models import SongRecord
from songradio.engine.profiles import ADVANCED_PROFILE, SIMPLE_PROFILE, get_profile
from songradio.engine.recommender import RecommendationEngine

TARGET = SongRecord(id="A", title="Love Song", primary_artists="X", album="Z", year="2021", language="hindi")

_TITLES = ("Pyar Ki Raat", "Party Nights", "Sad Alvida", "Calm Peace")


def _catalog():
    songs = []
    for artist in range(5):
        for index, title in enumerate(_TITLES):
            songs.append(
                SongRecord(
                    id=f"s{artist}{index}",
                    title=f"{title} {artist}",
                    primary_artists=f"Singer {artist}",
                    album=f"Album {artist}",
                    year=str(2017 + (artist + index) % 5),
                    language="hindi",
                    duration=str(200 + index * 10),
                )
            )
    return songs


def test_end_to_end_selection():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    limit = 10
    selected = engine.recommend(TARGET, [TARGET] + _catalog(), limit=limit)

    assert len(selected) == limit
    assert "A" not in {item.id for item in selected}
    scores = [item.score for item in selected]
    assert scores == sorted(scores, reverse=True)
    artist_cap = ADVANCED_PROFILE.diversity.caps[0]
    assert artist_cap.dimension == "artist"
    per_artist = Counter(dimension_key(item, "artist") for item in selected)
    assert max(per_artist.values()) <= artist_cap.limit_for(limit) == max(2, math.ceil(limit / 5))


def test_recommend_is_deterministic():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    catalog = _catalog()
    runs = [[(item.id, item.score) for item in engine.recommend(TARGET, catalog, limit=12)] for _ in range(3)]
    assert runs[0] == runs[1] == runs[2]


def test_minimum_results_with_single_artist_pool():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    catalog = [
        SongRecord(id=f"p{index}", title=f"Pyar Ki Baat {index}", primary_artists="Singer 0", year="2021")
        for index in range(20)
    ]
    selected = engine.recommend(TARGET, catalog, limit=20)
    assert len(selected) >= 15


def test_simple_profile_end_to_end():
    engine = RecommendationEngine(SIMPLE_PROFILE)
    selected = engine.recommend(TARGET, _catalog(), limit=10)
    assert len(selected) == 10
    assert engine.algorithm == SIMPLE_PROFILE.algorithm
    assert all(item.features.mood is None for item in selected)


def test_relevance_factors():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    candidate = SongRecord(id="c", title="Pyar Wala Gaana", primary_artists="X, Y", album="Z", year="2022", language="hindi")
    factors = engine.relevance_factors(TARGET, candidate)
    assert factors == ["Same Artist", "Same Album", "Same Genre", "Same Mood", "Same Language", "Same Era"]
    stranger = SongRecord(id="s", title="Rock Storm", primary_artists="Q", album="R", year="1988", language="english")
    assert engine.relevance_factors(TARGET, stranger) == []


def test_get_profile():
    assert get_profile("advanced") is ADVANCED_PROFILE
    assert get_profile("simple") is SIMPLE_PROFILE
    with pytest.raises(ValueError):
        get_profile("turbo")
