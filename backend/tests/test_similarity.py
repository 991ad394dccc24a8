import pytest

from songradio.engine.features import KeywordHeuristics, extract_features
from songradio.engine.models import SongRecord
from songradio.engine.profiles import ADVANCED_PROFILE, SIMPLE_PROFILE
from songradio.engine.similarity import (
    SimilarityScorer,
    are_artists_related,
    are_eras_adjacent,
    are_genres_related,
    artist_names,
    has_same_artist,
)


def _scorer(profile):
    return SimilarityScorer(profile.similarity, profile.tables.era_order), KeywordHeuristics(profile.tables)


def test_artist_names_split_and_clean():
    assert artist_names("Arijit Singh, Shreya Ghoshal & Pritam") == {"arijit singh", "shreya ghoshal", "pritam"}
    assert artist_names("A.R. Rahman + ") == {"ar rahman"}
    assert artist_names("") == frozenset()
    assert artist_names(None) == frozenset()


def test_has_same_artist():
    assert has_same_artist("Arijit Singh, Pritam", "pritam")
    assert not has_same_artist("Arijit Singh", "Atif Aslam")
    assert not has_same_artist("", "")


def test_related_artists_checked_both_ways():
    weights = ADVANCED_PROFILE.similarity
    assert are_artists_related(weights, "Arijit Singh, Pritam", "Shreya Ghoshal")
    assert are_artists_related(weights, "Badshah", "Honey Singh")
    assert not are_artists_related(weights, "Pritam", "Shreya Ghoshal")
    assert not are_artists_related(weights, "", "Arijit Singh")


def test_genre_relation_is_directional():
    weights = ADVANCED_PROFILE.similarity
    assert are_genres_related(weights, "rock", "metal")
    assert not are_genres_related(weights, "metal", "rock")


def test_era_adjacency():
    order = ADVANCED_PROFILE.tables.era_order
    assert are_eras_adjacent(order, "2010s", "2015-2019")
    assert are_eras_adjacent(order, "classic", "1990s")
    assert not are_eras_adjacent(order, "2000s", "2020s")
    assert not are_eras_adjacent(order, "2000s", "future")


@pytest.mark.parametrize("profile, expected", [(ADVANCED_PROFILE, 0.97 + 0.9 * 0.03), (SIMPLE_PROFILE, 1.0)])
def test_identical_songs_score_full_weight(profile, expected):
    scorer, heuristics = _scorer(profile)
    song = SongRecord(id="a", title="Party Dance", primary_artists="Honey Singh", year="2021", play_count="50000000")
    features = extract_features(song, heuristics)
    assert scorer.similarity(features, features, song, song) == pytest.approx(expected)


@pytest.mark.parametrize("profile", [ADVANCED_PROFILE, SIMPLE_PROFILE])
def test_scores_stay_in_unit_interval(profile):
    scorer, heuristics = _scorer(profile)
    songs = [
        SongRecord(id="1", title="Sad Alvida", primary_artists="Arijit Singh", year="2016"),
        SongRecord(id="2", title="Rock Metal Power", primary_artists="Band X", year="1985", language="english"),
        SongRecord(id="3", title="", primary_artists="", album="", year="", language=""),
        SongRecord(id="4", title="Bhajan Aarti", primary_artists="Anup Jalota", year="1999", play_count="5000"),
    ]
    for a in songs:
        for b in songs:
            value = scorer.similarity(extract_features(a, heuristics), extract_features(b, heuristics), a, b)
            assert 0.0 <= value <= 1.0


def test_related_genre_gets_partial_credit_without_renormalizing():
    scorer, heuristics = _scorer(ADVANCED_PROFILE)
    target = SongRecord(id="t", title="Rock Anthem", primary_artists="Alpha", album="", year="2021")
    related = SongRecord(id="r", title="Pop Anthem", primary_artists="Beta", album="", year="2021")
    unrelated = SongRecord(id="u", title="Bhajan Anthem", primary_artists="Gamma", album="", year="2021")
    t = extract_features(target, heuristics)
    assert t.genre == "rock"
    assert extract_features(related, heuristics).genre == "pop"
    assert extract_features(unrelated, heuristics).genre == "devotional"
    with_related = scorer.similarity(t, extract_features(related, heuristics), target, related)
    without = scorer.similarity(t, extract_features(unrelated, heuristics), target, unrelated)
    assert with_related - without == pytest.approx(0.25 * 0.6)


def test_advanced_sum_for_known_pair():
    scorer, heuristics = _scorer(ADVANCED_PROFILE)
    target = SongRecord(id="t", title="Sunrise", primary_artists="Alpha", album="", year="2021", play_count="10")
    candidate = SongRecord(id="c", title="Sunset", primary_artists="Beta", album="", year="2011", play_count="10")
    a = extract_features(target, heuristics)
    b = extract_features(candidate, heuristics)
    # same genre/mood/language, eras 2020s vs 2010s are not adjacent, all continuous values equal
    expected = 0.25 + 0.2 + 0.0 + 0.0 + 0.08 + 0.08 + 0.06 + 0.05 + 0.3 * 0.03
    assert scorer.similarity(a, b, target, candidate) == pytest.approx(expected)
