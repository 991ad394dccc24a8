from __future__ import annotations

from typing import List
from urllib.parse import quote

from ..engine.models import UNKNOWN_ALBUM, SongRecord
from .client import EndpointTemplate

LEGACY_QUERY = "api_version=4&_format=json&_marker=0"


def _q(value: str) -> str:
    return quote(str(value), safe="")


def song_detail_templates(song_id: str) -> List[EndpointTemplate]:
    sid = _q(song_id)
    return [
        lambda base: f"{base}?__call=song.getDetails&cc=in&_marker=0&_format=json&pids={sid}",
        lambda base: f"{base}?__call=webapi.get&token={sid}&type=song&_format=json&_marker=0",
        lambda base: f"{base}?__call=song.getDetails&{LEGACY_QUERY}&pids={sid}&includeMetaTags=1&ctx=web6dot0",
    ]


def legacy_search_template(query: str, count: int) -> EndpointTemplate:
    return lambda base: f"{base}?__call=search.getResults&{LEGACY_QUERY}&query={_q(query)}&p=1&n={int(count)}"


def recommendation_templates(song: SongRecord) -> List[EndpointTemplate]:
    sid = _q(song.id)
    language = _q(song.language or "hindi")
    templates: List[EndpointTemplate] = [
        lambda base: f"{base}?__call=reco.getreco&{LEGACY_QUERY}&pid={sid}&language={language}&n=20",
        lambda base: (
            f"{base}?__call=webradio.createFeaturedStation&{LEGACY_QUERY}"
            f"&language={language}&entity_id={sid}&entity_type=songs&n=15"
        ),
        lambda base: f"{base}?__call=content.getSimilarSongs&{LEGACY_QUERY}&pid={sid}&language={language}&n=15",
    ]
    if song.album and song.album != UNKNOWN_ALBUM:
        templates.append(legacy_search_template(song.album, 10))
    return templates


def rest_song_template(song_id: str) -> EndpointTemplate:
    return lambda base: f"{base}/songs/{_q(song_id)}"


def rest_search_template(query: str, limit: int) -> EndpointTemplate:
    return lambda base: f"{base}/search/songs?query={_q(query)}&page=1&limit={int(limit)}"
