import asyncio
from collections import Counter

import httpx
import pytest

from songradio.upstream.client import FlatRetryPolicy, UpstreamClient, UpstreamUnavailable
from songradio.upstream.endpoints import legacy_search_template, recommendation_templates, song_detail_templates
from songradio.upstream.parsing import is_song_list
from songradio.engine.models import SongRecord

BASES = ["https://one.example/api.php", "https://two.example/api.php"]
NO_DELAY = FlatRetryPolicy(attempts=2, delay=0.0)


def _run(handler, call):
    async def runner():
        client = UpstreamClient(base_urls=BASES, retry_policy=NO_DELAY, transport=httpx.MockTransport(handler))
        try:
            return await call(client)
        finally:
            await client.close()

    return asyncio.run(runner())


def test_all_network_errors_raise_unavailable_with_last_error():
    calls = Counter()

    def handler(request: httpx.Request) -> httpx.Response:
        calls[str(request.url)] += 1
        raise httpx.ConnectError(f"boom {request.url.host}", request=request)

    templates = song_detail_templates("abc")
    with pytest.raises(UpstreamUnavailable) as excinfo:
        _run(handler, lambda client: client.request(templates))

    assert "boom two.example" in str(excinfo.value)
    assert str(excinfo.value).startswith("All endpoints failed. Last error:")
    assert len(calls) == len(BASES) * len(templates)
    assert set(calls.values()) == {2}


def test_server_errors_are_retried_then_next_endpoint():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        if request.url.host == "one.example":
            return httpx.Response(503)
        return httpx.Response(200, json={"results": [{"id": "1", "title": "Song"}]})

    response = _run(handler, lambda client: client.request([legacy_search_template("song", 5)]))
    assert response.base_url == BASES[1]
    assert response.payload["results"][0]["id"] == "1"
    assert seen == ["one.example", "one.example", "two.example"]


def test_empty_and_rejected_bodies_skip_without_retry():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params.get("__call"))
        call = request.url.params.get("__call")
        if call == "reco.getreco":
            return httpx.Response(200, content=b"")
        if call == "webradio.createFeaturedStation":
            return httpx.Response(200, json={"error": "nope"})
        return httpx.Response(200, json={"songs": [{"id": "9", "title": "Ok"}]})

    song = SongRecord(id="abc", title="Seed")
    response = _run(
        handler,
        lambda client: client.request(recommendation_templates(song), accept=is_song_list),
    )
    assert response.payload == {"songs": [{"id": "9", "title": "Ok"}]}
    assert seen == ["reco.getreco", "webradio.createFeaturedStation", "content.getSimilarSongs"]


def test_client_error_with_body_is_returned():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "missing"})

    response = _run(handler, lambda client: client.request([legacy_search_template("x", 1)]))
    assert response.status_code == 404
    assert response.base_url == BASES[0]


def test_timeout_grows_with_attempt():
    timeouts = []

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"]["read"])
        if len(timeouts) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json=[{"id": "1", "title": "Song"}])

    _run(handler, lambda client: client.request([legacy_search_template("x", 1)], timeout=1.5))
    assert timeouts == [1.5, 3.0]


def test_templates_escape_values():
    url = legacy_search_template("arijit & co/2", 3)(BASES[0])
    assert "query=arijit%20%26%20co%2F2" in url
    assert url.endswith("&n=3")
    song = SongRecord(id="id1", title="t", album="Aashiqui 2")
    assert len(recommendation_templates(song)) == 4
    assert len(recommendation_templates(SongRecord(id="id1", title="t"))) == 3
