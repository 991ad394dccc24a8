from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

UNKNOWN_ALBUM = "Unknown Album"
DEFAULT_LANGUAGE = "hindi"
DEFAULT_YEAR = "2023"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def leading_int(value: Any) -> Optional[int]:
    """Parse the leading integer of ``value`` the way loose upstream fields need it.

    ``"2021-05-01"`` -> 2021, ``"245"`` -> 245, ``"n/a"`` -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


@dataclass(frozen=True, slots=True)
class SongRecord:
    id: str
    title: str
    primary_artists: str = ""
    featured_artists: str = ""
    album: str = UNKNOWN_ALBUM
    year: str = DEFAULT_YEAR
    language: str = DEFAULT_LANGUAGE
    duration: str = ""
    play_count: str = ""
    image: str = ""
    url: str = ""
    has_lyrics: bool = False

    @property
    def duration_seconds(self) -> Optional[int]:
        return leading_int(self.duration)

    @property
    def play_count_value(self) -> int:
        return leading_int(self.play_count) or 0

    @property
    def year_value(self) -> Optional[int]:
        return leading_int(self.year)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SongRecord":
        return cls(**{key: data[key] for key in cls.__dataclass_fields__ if key in data})


@dataclass(frozen=True, slots=True)
class FeatureVector:
    genre: str
    mood: Optional[str]
    era: str
    tempo: float
    energy: float
    danceability: float
    valence: float
    acousticness: float
    instrumentalness: float
    popularity: float
    language: str


@dataclass(slots=True)
class ScoredCandidate:
    song: SongRecord
    features: FeatureVector
    similarity: float
    score: float
    adjustments: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def id(self) -> str:
        return self.song.id
