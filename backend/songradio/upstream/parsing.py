from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..engine.models import DEFAULT_LANGUAGE, DEFAULT_YEAR, UNKNOWN_ALBUM, SongRecord

logger = logging.getLogger("songradio.parsing")


@dataclass(frozen=True, slots=True)
class Recognized:
    shape: str
    songs: List[SongRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Unrecognized:
    reason: str


ParseResult = Union[Recognized, Unrecognized]

Matcher = Callable[[Any, Optional[str]], Optional[List[Any]]]


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return html.unescape(value).strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        return _text(value.get("name") or value.get("title"))
    if isinstance(value, list):
        return ", ".join(part for part in (_text(item) for item in value) if part)
    return ""


def _first_text(raw: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = _text(raw.get(key))
        if value:
            return value
    return ""


def _artist_text(raw: Dict[str, Any], flat_keys: Sequence[str], role: str) -> str:
    value = _first_text(raw, *flat_keys)
    if value:
        return value
    # saavn.dev: {"artists": {"primary": [{"name": ...}]}}
    artists = raw.get("artists")
    if isinstance(artists, dict):
        value = _text(artists.get(role))
        if value:
            return value
    more_info = raw.get("more_info")
    if isinstance(more_info, dict):
        artist_map = more_info.get("artistMap")
        if isinstance(artist_map, dict):
            return _text(artist_map.get(f"{role}_artists"))
    return ""


def _image(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        for item in reversed(value):
            if isinstance(item, dict):
                link = item.get("url") or item.get("link")
                if link:
                    return str(link)
            elif isinstance(item, str) and item:
                return item
    return ""


def _truthy_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def normalize_song(raw: Any, *, fallback_id: Optional[str] = None) -> Optional[SongRecord]:
    """Map one upstream song object onto ``SongRecord``; ``None`` when unusable."""
    if not isinstance(raw, dict):
        return None
    song_id = _text(raw.get("id")) or (fallback_id or "")
    title = _first_text(raw, "song", "name", "title")
    if not song_id or not title:
        return None

    more_info = raw.get("more_info") if isinstance(raw.get("more_info"), dict) else {}
    album = _first_text(raw, "album", "album_name") or _text(more_info.get("album"))

    return SongRecord(
        id=song_id,
        title=title,
        primary_artists=_artist_text(raw, ("primary_artists", "primaryArtists", "subtitle"), "primary"),
        featured_artists=_artist_text(raw, ("featured_artists", "featuredArtists"), "featured"),
        album=album or UNKNOWN_ALBUM,
        year=_first_text(raw, "year", "releaseDate", "release_date") or DEFAULT_YEAR,
        language=_first_text(raw, "language") or _text(more_info.get("language")) or DEFAULT_LANGUAGE,
        duration=_first_text(raw, "duration") or _text(more_info.get("duration")),
        play_count=_first_text(raw, "play_count", "playCount"),
        image=_image(raw.get("image")) or _text(raw.get("media_preview_url")),
        url=_first_text(raw, "perma_url", "permaUrl", "url"),
        has_lyrics=_truthy_flag(raw.get("has_lyrics")) or _truthy_flag(raw.get("hasLyrics")),
    )


def _as_list(value: Any) -> Optional[List[Any]]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return None


def _data_results(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        return data["results"]
    return None


def _data_list(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    data = payload.get("data") if isinstance(payload, dict) else None
    return data if isinstance(data, list) else None


def _reco(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    reco = payload.get("reco") if isinstance(payload, dict) else None
    return reco if isinstance(reco, list) else None


def _station(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    if isinstance(payload, dict) and payload.get("stationid") and payload.get("songs"):
        return _as_list(payload["songs"])
    return None


def _songs(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    songs = payload.get("songs") if isinstance(payload, dict) else None
    if isinstance(songs, dict) and isinstance(songs.get("data"), list):
        return songs["data"]
    return songs if isinstance(songs, list) else None


def _album_songs(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    albums = payload.get("albums") if isinstance(payload, dict) else None
    if isinstance(albums, dict) and isinstance(albums.get("data"), list):
        return [song for album in albums["data"] if isinstance(album, dict) for song in (album.get("songs") or [])]
    return None


def _keyed_reco(payload: Any, song_id: Optional[str]) -> Optional[List[Any]]:
    if not song_id or not isinstance(payload, dict):
        return None
    entry = payload.get(song_id)
    if isinstance(entry, dict) and isinstance(entry.get("reco"), list):
        return entry["reco"]
    return None


def _results_song(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    results = payload.get("results") if isinstance(payload, dict) else None
    if isinstance(results, dict) and results.get("song"):
        song = results["song"]
        if isinstance(song, dict) and "data" in song:
            song = song["data"]
        return _as_list(song)
    return None


def _results_list(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    results = payload.get("results") if isinstance(payload, dict) else None
    return results if isinstance(results, list) else None


def _bare_list(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    return payload if isinstance(payload, list) else None


SONG_LIST_SHAPES: Tuple[Tuple[str, Matcher], ...] = (
    ("data.results", _data_results),
    ("data[]", _data_list),
    ("reco", _reco),
    ("station", _station),
    ("songs", _songs),
    ("albums.songs", _album_songs),
    ("keyed.reco", _keyed_reco),
    ("results.song", _results_song),
    ("results[]", _results_list),
    ("list", _bare_list),
)


def parse_song_list(payload: Any, song_id: Optional[str] = None) -> ParseResult:
    for shape, matcher in SONG_LIST_SHAPES:
        items = matcher(payload, song_id)
        if items is None:
            continue
        songs = [song for song in (normalize_song(item) for item in items) if song is not None]
        return Recognized(shape=shape, songs=songs)
    return Unrecognized(reason=f"no song list in payload of type {type(payload).__name__}")


def _single_data(payload: Any, _song_id: Optional[str]) -> Optional[List[Any]]:
    data = payload.get("data") if isinstance(payload, dict) else None
    return _as_list(data)


def _single_keyed(payload: Any, song_id: Optional[str]) -> Optional[List[Any]]:
    if song_id and isinstance(payload, dict) and isinstance(payload.get(song_id), dict):
        return [payload[song_id]]
    return None


SONG_DETAIL_SHAPES: Tuple[Tuple[str, Matcher], ...] = (
    ("data", _single_data),
    ("keyed", _single_keyed),
    ("songs", _songs),
    ("results.song", _results_song),
    ("list", _bare_list),
)


def parse_song_details(payload: Any, song_id: str) -> Union[SongRecord, Unrecognized]:
    for shape, matcher in SONG_DETAIL_SHAPES:
        items = matcher(payload, song_id)
        if not items:
            continue
        song = normalize_song(items[0], fallback_id=song_id)
        if song is not None:
            return song
        logger.debug("Shape %s matched for %s but carried no usable song", shape, song_id)
    return Unrecognized(reason=f"no song details for {song_id}")


def is_song_list(payload: Any) -> bool:
    return isinstance(parse_song_list(payload), Recognized)
