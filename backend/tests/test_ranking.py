import pytest

from songradio.engine.models import SongRecord
from songradio.engine.profiles import ADVANCED_PROFILE, SIMPLE_PROFILE
from songradio.engine.ranking import apply_adjustments, are_titles_near_duplicate
from songradio.engine.recommender import RecommendationEngine

ADVANCED_RULES = ADVANCED_PROFILE.ranking
SIMPLE_RULES = SIMPLE_PROFILE.ranking


@pytest.mark.parametrize(
    "a, b, loose, expected",
    [
        ("Tum Hi Ho", "Tum Hi Ho (Unplugged)", True, True),
        ("Tum Hi Ho", "Tum Hi Ho (Unplugged)", False, True),
        ("Kesariya", "Kesariya - Remastered", True, True),
        ("Kesariya", "Kesariya - Remastered", False, False),
        ("Raabta", "Raabta Night in a Motel", True, True),
        ("Raabta", "Raabta Night in a Motel", False, False),
        ("Dil", "Dil Se", True, False),
        ("Channa Mereya", "Agar Tum Saath Ho", True, False),
        ("", "Anything", True, False),
    ],
)
def test_near_duplicate_titles(a, b, loose, expected):
    assert are_titles_near_duplicate(a, b, loose=loose) is expected


def test_duplicate_title_penalty_applies():
    target = SongRecord(id="t", title="Tum Hi Ho", primary_artists="Arijit Singh")
    candidate = SongRecord(id="c", title="Tum Hi Ho (Unplugged)", primary_artists="Someone Else", year="2015")
    score, applied = apply_adjustments(ADVANCED_RULES, target, candidate, 0.8)
    assert "duplicate_title" in applied
    assert score <= 0.8 * 0.3
    simple_score, simple_applied = apply_adjustments(SIMPLE_RULES, target, candidate, 0.8)
    assert "duplicate_title" in simple_applied
    assert simple_score == pytest.approx(0.8 * 0.3)


def test_advanced_boosts_and_penalties_stack():
    target = SongRecord(id="t", title="First", primary_artists="Arijit Singh", album="Aashiqui 2", duration="240")
    candidate = SongRecord(
        id="c",
        title="Second",
        primary_artists="Arijit Singh, Pritam",
        album="Aashiqui 2",
        duration="500",
        play_count="6000000",
    )
    score, applied = apply_adjustments(ADVANCED_RULES, target, candidate, 0.5)
    assert applied == ("same_artist", "same_album", "popular", "duration_gap")
    assert score == pytest.approx(0.5 * 1.4 * 1.2 * 1.05 * 0.8)


def test_unknown_album_gets_no_album_boost():
    target = SongRecord(id="t", title="First")
    candidate = SongRecord(id="c", title="Second")
    _, applied = apply_adjustments(ADVANCED_RULES, target, candidate, 0.5)
    assert "same_album" not in applied


def test_zero_duration_skips_gap_penalty():
    target = SongRecord(id="t", title="First", duration="0")
    candidate = SongRecord(id="c", title="Second", duration="600")
    _, applied = apply_adjustments(ADVANCED_RULES, target, candidate, 0.5)
    assert "duration_gap" not in applied


def test_simple_recency_and_popularity():
    target = SongRecord(id="t", title="First", primary_artists="A")
    candidate = SongRecord(id="c", title="Second", primary_artists="A", year="2021", play_count="2000000")
    score, applied = apply_adjustments(SIMPLE_RULES, target, candidate, 0.5)
    assert applied == ("popular", "recent")
    assert score == pytest.approx(0.5 * 1.1 * 1.05)


def test_rank_excludes_target_and_sorts_descending():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    target = SongRecord(id="A", title="Love Song", primary_artists="X", album="Z", year="2021")
    candidates = [
        target,
        SongRecord(id="b", title="Rock Storm", primary_artists="Y", album="Q", year="1980", language="english"),
        SongRecord(id="c", title="Pyar Ki Baatein", primary_artists="X", album="Z", year="2021"),
        SongRecord(id="d", title="Ishq Wala", primary_artists="W", album="R", year="2019"),
    ]
    ranked = engine.rank(target, candidates)
    ids = [item.id for item in ranked]
    assert "A" not in ids
    assert ids[0] == "c"
    scores = [item.score for item in ranked]
    assert scores == sorted(scores, reverse=True)


def test_advanced_floor_drops_weak_candidates():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    target = SongRecord(id="A", title="Tum Hi Ho", primary_artists="Arijit Singh", album="Aashiqui 2", year="2013", duration="262")
    weak = SongRecord(
        id="w",
        title="Tum Hi Ho (Remix)",
        primary_artists="DJ Nobody",
        album="Club",
        year="1975",
        language="english",
        duration="900",
    )
    assert engine.rank(target, [weak]) == []


def test_rank_is_deterministic():
    engine = RecommendationEngine(ADVANCED_PROFILE)
    target = SongRecord(id="A", title="Love Song", primary_artists="X", album="Z", year="2021")
    candidates = [
        SongRecord(id=str(index), title=f"Track {index}", primary_artists=f"Artist {index % 3}", year=str(2000 + index))
        for index in range(12)
    ]
    first = [(item.id, item.score) for item in engine.recommend(target, candidates, limit=8)]
    second = [(item.id, item.score) for item in engine.recommend(target, candidates, limit=8)]
    assert first == second
