import pytest

from songradio.engine.models import UNKNOWN_ALBUM, SongRecord
from songradio.upstream.parsing import (
    Recognized,
    Unrecognized,
    is_song_list,
    normalize_song,
    parse_song_details,
    parse_song_list,
)

LEGACY_SONG = {
    "id": "abc123",
    "song": "Tum Hi Ho",
    "primary_artists": "Arijit Singh",
    "album": "Aashiqui 2",
    "year": "2013",
    "language": "hindi",
    "duration": "262",
    "play_count": "12000000",
    "image": "https://c.saavncdn.com/tum-150x150.jpg",
    "perma_url": "https://www.jiosaavn.com/song/tum-hi-ho/abc123",
    "has_lyrics": "true",
}

REST_SONG = {
    "id": "def456",
    "name": "Kesariya &amp; More",
    "artists": {"primary": [{"name": "Arijit Singh"}, {"name": "Pritam"}]},
    "album": {"name": "Brahmastra"},
    "year": 2022,
    "language": "hindi",
    "duration": 268,
    "playCount": 5000000,
    "image": [{"quality": "50x50", "url": "small.jpg"}, {"quality": "500x500", "url": "large.jpg"}],
    "url": "https://www.jiosaavn.com/song/kesariya/def456",
    "hasLyrics": False,
}


def test_normalize_legacy_song():
    song = normalize_song(LEGACY_SONG)
    assert song == SongRecord(
        id="abc123",
        title="Tum Hi Ho",
        primary_artists="Arijit Singh",
        album="Aashiqui 2",
        year="2013",
        language="hindi",
        duration="262",
        play_count="12000000",
        image="https://c.saavncdn.com/tum-150x150.jpg",
        url="https://www.jiosaavn.com/song/tum-hi-ho/abc123",
        has_lyrics=True,
    )


def test_normalize_rest_song_flattens_nested_fields():
    song = normalize_song(REST_SONG)
    assert song is not None
    assert song.title == "Kesariya & More"
    assert song.primary_artists == "Arijit Singh, Pritam"
    assert song.album == "Brahmastra"
    assert song.year == "2022"
    assert song.duration_seconds == 268
    assert song.play_count_value == 5000000
    assert song.image == "large.jpg"
    assert song.has_lyrics is False


def test_normalize_fills_defaults():
    song = normalize_song({"id": "x1", "title": "Bare"})
    assert song is not None
    assert song.album == UNKNOWN_ALBUM
    assert song.language == "hindi"
    assert song.year == "2023"


@pytest.mark.parametrize("raw", [None, "song", {"id": "x"}, {"title": "no id"}])
def test_normalize_rejects_unusable(raw):
    assert normalize_song(raw) is None


@pytest.mark.parametrize(
    "payload, shape",
    [
        ({"data": {"results": [REST_SONG]}}, "data.results"),
        ({"data": [REST_SONG]}, "data[]"),
        ({"reco": [LEGACY_SONG]}, "reco"),
        ({"stationid": "st1", "songs": [LEGACY_SONG]}, "station"),
        ({"songs": {"data": [LEGACY_SONG]}}, "songs"),
        ({"albums": {"data": [{"songs": [LEGACY_SONG]}]}}, "albums.songs"),
        ({"results": {"song": {"data": [LEGACY_SONG]}}}, "results.song"),
        ({"results": [LEGACY_SONG]}, "results[]"),
        ([LEGACY_SONG], "list"),
    ],
)
def test_parse_song_list_shapes(payload, shape):
    parsed = parse_song_list(payload)
    assert isinstance(parsed, Recognized)
    assert parsed.shape == shape
    assert len(parsed.songs) == 1


def test_parse_song_list_keyed_reco_needs_song_id():
    payload = {"seed1": {"reco": [LEGACY_SONG]}}
    assert isinstance(parse_song_list(payload), Unrecognized)
    parsed = parse_song_list(payload, "seed1")
    assert isinstance(parsed, Recognized)
    assert parsed.shape == "keyed.reco"


def test_parse_song_list_drops_unusable_items():
    parsed = parse_song_list({"results": [LEGACY_SONG, {"id": "nope"}, "junk"]})
    assert isinstance(parsed, Recognized)
    assert [song.id for song in parsed.songs] == ["abc123"]


@pytest.mark.parametrize("payload", [None, {}, {"error": "bad"}, "text", 42])
def test_parse_song_list_unrecognized(payload):
    assert isinstance(parse_song_list(payload), Unrecognized)
    assert not is_song_list(payload)


def test_parse_song_details_keyed_payload_uses_fallback_id():
    raw = dict(LEGACY_SONG)
    raw.pop("id")
    song = parse_song_details({"abc123": raw}, "abc123")
    assert isinstance(song, SongRecord)
    assert song.id == "abc123"


def test_parse_song_details_rest_payload():
    song = parse_song_details({"success": True, "data": [REST_SONG]}, "def456")
    assert isinstance(song, SongRecord)
    assert song.title == "Kesariya & More"


def test_parse_song_details_unrecognized():
    assert isinstance(parse_song_details({"data": []}, "abc123"), Unrecognized)
    assert isinstance(parse_song_details({"status": "failure"}, "abc123"), Unrecognized)
