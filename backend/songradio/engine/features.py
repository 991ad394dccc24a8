from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Sequence, Tuple

import numpy as np

from .models import DEFAULT_LANGUAGE, FeatureVector, SongRecord, leading_int

CONTINUOUS_FEATURES: Tuple[str, ...] = (
    "tempo",
    "energy",
    "danceability",
    "valence",
    "acousticness",
    "instrumentalness",
    "popularity",
)


@dataclass(frozen=True)
class KeywordRule:
    """Yields ``value`` when any keyword occurs in the matching field.

    ``text`` is title + artists + album; ``genre`` tests the already derived genre.
    """

    value: object
    title: Tuple[str, ...] = ()
    artists: Tuple[str, ...] = ()
    text: Tuple[str, ...] = ()
    genre: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Classifier:
    rules: Tuple[KeywordRule, ...]
    default: object


@dataclass(frozen=True)
class HeuristicTables:
    tempo: Classifier
    energy: Classifier
    danceability: Classifier
    valence: Classifier
    acousticness: Classifier
    instrumentalness: Classifier
    genre: Classifier
    mood: Optional[Classifier]
    era_breakpoints: Tuple[Tuple[int, str], ...]
    era_fallback: str = "classic"
    language_genres: Mapping[str, str] = field(default_factory=dict)
    popularity_steps: Tuple[Tuple[int, float], ...] = (
        (10_000_000, 0.9),
        (1_000_000, 0.7),
        (100_000, 0.5),
    )
    popularity_floor: float = 0.3

    @property
    def newest_era(self) -> str:
        return self.era_breakpoints[0][1]

    @property
    def era_order(self) -> Tuple[str, ...]:
        return (self.era_fallback,) + tuple(label for _, label in reversed(self.era_breakpoints))


class FeatureHeuristics(Protocol):
    """Derives descriptors from song text. Swap for an audio-analysis backend."""

    def genre(self, song: SongRecord) -> str: ...

    def mood(self, song: SongRecord) -> Optional[str]: ...

    def era(self, year: object) -> str: ...

    def popularity(self, song: SongRecord) -> float: ...

    def continuous(self, song: SongRecord, genre: str) -> Mapping[str, float]: ...


@dataclass(frozen=True, slots=True)
class _SongText:
    title: str
    artists: str
    text: str
    genre: str = ""


def _mentions(haystack: str, keywords: Sequence[str]) -> bool:
    return any(keyword in haystack for keyword in keywords)


def _classify(classifier: Classifier, text: _SongText) -> object:
    for rule in classifier.rules:
        if (
            _mentions(text.title, rule.title)
            or _mentions(text.artists, rule.artists)
            or _mentions(text.text, rule.text)
            or _mentions(text.genre, rule.genre)
        ):
            return rule.value
    return classifier.default


def _song_text(song: SongRecord, genre: str = "") -> _SongText:
    title = (song.title or "").lower()
    artists = (song.primary_artists or "").lower()
    album = (song.album or "").lower()
    return _SongText(title=title, artists=artists, text=f"{title} {artists} {album}", genre=genre)


class KeywordHeuristics:
    def __init__(self, tables: HeuristicTables) -> None:
        self.tables = tables

    def genre(self, song: SongRecord) -> str:
        matched = _classify(self.tables.genre, _song_text(song))
        if matched is not None:
            return str(matched)
        language = (song.language or "").strip().lower()
        return self.tables.language_genres.get(language, str(self.tables.genre.default or "bollywood"))

    def mood(self, song: SongRecord) -> Optional[str]:
        if self.tables.mood is None:
            return None
        return str(_classify(self.tables.mood, _song_text(song)))

    def era(self, year: object) -> str:
        parsed = leading_int(year)
        if parsed is None:
            return self.tables.newest_era
        for threshold, label in self.tables.era_breakpoints:
            if parsed >= threshold:
                return label
        return self.tables.era_fallback

    def popularity(self, song: SongRecord) -> float:
        plays = song.play_count_value
        for threshold, value in self.tables.popularity_steps:
            if plays > threshold:
                return value
        return self.tables.popularity_floor

    def continuous(self, song: SongRecord, genre: str) -> Mapping[str, float]:
        text = _song_text(song, genre)
        tables = self.tables
        return {
            "tempo": float(_classify(tables.tempo, text)),
            "energy": float(_classify(tables.energy, text)),
            "danceability": float(_classify(tables.danceability, text)),
            "valence": float(_classify(tables.valence, text)),
            "acousticness": float(_classify(tables.acousticness, text)),
            "instrumentalness": float(_classify(tables.instrumentalness, text)),
        }


def extract_features(song: SongRecord, heuristics: FeatureHeuristics) -> FeatureVector:
    genre = heuristics.genre(song)
    continuous = heuristics.continuous(song, genre)
    return FeatureVector(
        genre=genre,
        mood=heuristics.mood(song),
        era=heuristics.era(song.year),
        tempo=continuous["tempo"],
        energy=continuous["energy"],
        danceability=continuous["danceability"],
        valence=continuous["valence"],
        acousticness=continuous["acousticness"],
        instrumentalness=continuous["instrumentalness"],
        popularity=heuristics.popularity(song),
        language=(song.language or DEFAULT_LANGUAGE).strip().lower() or DEFAULT_LANGUAGE,
    )


def continuous_vector(features: FeatureVector, names: Sequence[str]) -> np.ndarray:
    values = [float(getattr(features, name, 0.0)) for name in names]
    vector = np.array(values, dtype=np.float64)
    return np.nan_to_num(vector, nan=0.0, posinf=1.0, neginf=0.0)


# -- keyword tables ---------------------------------------------------------

_LANGUAGE_GENRES = {"hindi": "bollywood", "punjabi": "punjabi", "english": "pop"}

ADVANCED_TABLES = HeuristicTables(
    tempo=Classifier(
        rules=(
            KeywordRule(
                0.85,
                title=("dance", "party", "club", "beat", "remix", "dhol", "punjabi", "bhangra"),
                artists=("honey singh", "badshah", "dj", "yo yo"),
            ),
            KeywordRule(
                0.3,
                title=("slow", "sad", "romantic", "love", "pyar", "ishq", "dil", "mohabbat"),
                artists=("arijit singh", "shreya ghoshal", "lata mangeshkar"),
            ),
        ),
        default=0.6,
    ),
    energy=Classifier(
        rules=(
            KeywordRule(0.9, title=("rock", "metal", "party", "high", "loud", "power"), genre=("rock",)),
            KeywordRule(0.2, title=("acoustic", "unplugged", "soft", "calm"), genre=("classical",)),
            KeywordRule(0.8, genre=("dance", "electronic")),
        ),
        default=0.5,
    ),
    danceability=Classifier(
        rules=(
            KeywordRule(
                0.85,
                title=("dance", "party", "club", "beat", "thumka", "nachna"),
                genre=("dance", "electronic", "punjabi"),
            ),
            KeywordRule(0.1, genre=("classical", "devotional", "sad")),
        ),
        default=0.5,
    ),
    valence=Classifier(
        rules=(
            KeywordRule(0.8, title=("happy", "celebration", "party", "dance", "khushi", "shaadi", "wedding")),
            KeywordRule(
                0.2,
                title=("sad", "cry", "tears", "breakup", "alvida", "judaai", "gham", "dukh", "bewafa"),
            ),
            KeywordRule(0.6, title=("love", "romantic", "pyar", "mohabbat", "ishq", "dil")),
        ),
        default=0.5,
    ),
    acousticness=Classifier(
        rules=(
            KeywordRule(0.9, title=("acoustic", "unplugged", "classical", "instrumental")),
            KeywordRule(0.1, title=("electronic", "remix", "club", "auto-tune")),
        ),
        default=0.4,
    ),
    instrumentalness=Classifier(
        rules=(KeywordRule(0.8, title=("instrumental", "theme", "background", "music", "bgm")),),
        default=0.1,
    ),
    genre=Classifier(
        rules=(
            KeywordRule("classical", text=("classical", "raag", "tabla", "sitar", "hindustani")),
            KeywordRule("devotional", text=("devotional", "bhajan", "aarti", "kirtan", "mantra")),
            KeywordRule("rock", text=("rock", "metal", "guitar", "band")),
            KeywordRule("electronic", text=("electronic", "edm", "techno", "house", "dubstep")),
            KeywordRule("dance", text=("dance", "party", "club", "beat")),
            KeywordRule("romantic", text=("romantic", "love", "pyar", "mohabbat", "ishq")),
            KeywordRule("sufi", text=("sufi", "qawwali", "ghazal")),
            KeywordRule("punjabi", text=("punjabi", "bhangra", "dhol")),
            KeywordRule("sad", text=("sad", "gham", "dukh", "alvida", "judaai")),
            KeywordRule("pop", text=("pop", "mainstream", "chart")),
            KeywordRule("bollywood", text=("bollywood", "filmi", "hindi")),
        ),
        default=None,
    ),
    mood=Classifier(
        rules=(
            KeywordRule("energetic", title=("party", "dance", "celebration", "khushi")),
            KeywordRule("romantic", title=("romantic", "love", "pyar", "mohabbat")),
            KeywordRule("melancholic", title=("sad", "cry", "gham", "dukh", "alvida")),
            KeywordRule("peaceful", title=("calm", "peace", "shanti", "meditation")),
            KeywordRule("motivational", title=("motivation", "power", "strong", "himmat")),
        ),
        default="neutral",
    ),
    era_breakpoints=(
        (2020, "2020s"),
        (2015, "2015-2019"),
        (2010, "2010s"),
        (2000, "2000s"),
        (1990, "1990s"),
    ),
    language_genres=_LANGUAGE_GENRES,
)

SIMPLE_TABLES = HeuristicTables(
    tempo=Classifier(
        rules=(
            KeywordRule(0.8, title=("dance", "party", "club", "beat"), artists=("dj",)),
            KeywordRule(0.3, title=("love", "romantic", "slow", "sad")),
        ),
        default=0.5,
    ),
    energy=Classifier(
        rules=(
            KeywordRule(0.9, title=("rock", "metal", "party", "high")),
            KeywordRule(0.2, title=("acoustic", "unplugged", "classical")),
        ),
        default=0.6,
    ),
    danceability=Classifier(
        rules=(
            KeywordRule(0.8, title=("dance", "party"), genre=("electronic", "pop")),
            KeywordRule(0.1, genre=("classical", "devotional")),
        ),
        default=0.5,
    ),
    valence=Classifier(
        rules=(
            KeywordRule(0.8, title=("happy", "celebration", "party", "dance")),
            KeywordRule(0.2, title=("sad", "breakup", "cry", "lonely")),
        ),
        default=0.5,
    ),
    acousticness=Classifier(
        rules=(
            KeywordRule(0.9, title=("acoustic", "unplugged", "classical"), artists=("classical",)),
            KeywordRule(0.1, title=("electronic", "remix", "club")),
        ),
        default=0.4,
    ),
    instrumentalness=Classifier(
        rules=(KeywordRule(0.8, title=("instrumental", "theme", "background")),),
        default=0.1,
    ),
    genre=Classifier(
        rules=(
            KeywordRule("bollywood", text=("bollywood", "hindi", "filmi")),
            KeywordRule("classical", text=("classical", "raag")),
            KeywordRule("devotional", text=("devotional", "bhajan")),
            KeywordRule("rock", text=("rock", "metal")),
            KeywordRule("pop", text=("pop", "mainstream")),
            KeywordRule("electronic", text=("electronic", "edm")),
            KeywordRule("folk", text=("folk", "traditional")),
            KeywordRule("punjabi", text=("punjabi",)),
            KeywordRule("sufi", text=("sufi",)),
        ),
        default=None,
    ),
    mood=None,
    era_breakpoints=(
        (2020, "2020s"),
        (2010, "2010s"),
        (2000, "2000s"),
        (1990, "1990s"),
    ),
    language_genres=_LANGUAGE_GENRES,
)
