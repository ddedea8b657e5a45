import json
import logging

import httpx
import pytest

from omdb_rec import client as omdb
from omdb_rec.errors import ConfigurationError, Failure, NotFound, Ok

MATRIX = {
    "Title": "The Matrix",
    "Year": "1999",
    "Genre": "Action, Sci-Fi",
    "Director": "Lana Wachowski, Lilly Wachowski",
    "Actors": "Keanu Reeves, Laurence Fishburne",
    "imdbRating": "8.7",
    "imdbID": "tt0133093",
    "Response": "True",
}


def _client(handler, **kwargs) -> omdb.OMDbClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return omdb.OMDbClient("secret", base_url="http://omdb.test/", client=http, **kwargs)


def test_fetch_details_sends_title_lookup():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json=MATRIX)

    with _client(handler) as api:
        result = api.fetch_details("The Matrix")

    assert isinstance(result, Ok)
    assert result.value.imdb_id == "tt0133093"
    assert seen == {"apikey": "secret", "t": "The Matrix", "plot": "full"}


def test_search_sends_paged_movie_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json={
            "Search": [{"Title": "The Matrix", "imdbID": "tt0133093", "Year": "1999", "Type": "movie"}],
            "totalResults": "1",
            "Response": "True",
        })

    with _client(handler) as api:
        result = api.search("matrix", 2)

    assert isinstance(result, Ok)
    assert [h.title for h in result.value.hits] == ["The Matrix"]
    assert seen["s"] == "matrix"
    assert seen["type"] == "movie"
    assert seen["page"] == "2"


def test_fetch_episode_sends_season_and_episode():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json={"Title": "Pilot", "Season": "1", "Episode": "1", "Response": "True"})

    with _client(handler) as api:
        result = api.fetch_episode("Breaking Bad", 1, 1)

    assert result.value.season == "1"
    assert seen["t"] == "Breaking Bad"
    assert seen["Season"] == "1"
    assert seen["Episode"] == "1"


@pytest.mark.parametrize("message", ["Movie not found!", "Episode not found!", "Series or episode not found!"])
def test_not_found_response_is_distinct(message):
    def handler(request):
        return httpx.Response(200, json={"Response": "False", "Error": message})

    with _client(handler) as api:
        result = api.fetch_details("Nowhere")

    assert result == NotFound(message)


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"Response": "False", "Error": "Invalid API key!"}),
    httpx.Response(200, json={"Response": "False", "Error": "Request limit reached!"}),
    httpx.Response(500, text="oops"),
    httpx.Response(200, text="<html>not json</html>"),
    httpx.Response(200, text=json.dumps(["unexpected"])),
])
def test_other_problems_are_failures(response):
    with _client(lambda request: response) as api:
        result = api.fetch_details("The Matrix")

    assert isinstance(result, Failure)


def test_transport_errors_are_failures_not_exceptions():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as api:
        assert isinstance(api.search("matrix", 1), Failure)


def test_timeouts_are_failures():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with _client(handler) as api:
        result = api.fetch_details("The Matrix")

    assert isinstance(result, Failure)
    assert "Timeout" in result.detail


def test_no_retries_on_failure():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    with _client(handler) as api:
        api.fetch_details("The Matrix")

    assert len(calls) == 1


def test_api_key_is_required():
    with pytest.raises(ConfigurationError):
        omdb.OMDbClient("")
    with pytest.raises(ConfigurationError):
        omdb.AsyncOMDbClient(None)


def test_api_key_is_not_logged(caplog):
    caplog.set_level(logging.DEBUG)

    with _client(lambda request: httpx.Response(500)) as api:
        api.fetch_details("The Matrix")

    messages = " ".join(r.getMessage() for r in caplog.records if r.name.startswith("omdb_rec"))
    assert "The Matrix" in messages
    assert "secret" not in messages


@pytest.mark.asyncio
async def test_async_client_with_provided_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("s"):
            return httpx.Response(200, json={"Response": "False", "Error": "Movie not found!"})
        return httpx.Response(200, json=MATRIX)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        async with omdb.AsyncOMDbClient("secret", base_url="http://omdb.test/", client=http) as api:
            details = await api.fetch_details("The Matrix")
            search = await api.search("nothing", 1)

        # A caller-supplied client stays open
        assert not http.is_closed

    assert details.value.title == "The Matrix"
    assert isinstance(search, NotFound)


@pytest.mark.asyncio
async def test_async_client_requires_context_manager():
    api = omdb.AsyncOMDbClient("secret")

    with pytest.raises(RuntimeError):
        await api.fetch_details("The Matrix")


@pytest.mark.asyncio
async def test_async_client_owns_default_client(monkeypatch):
    transport = httpx.MockTransport(lambda request: httpx.Response(502))
    original_async_client = httpx.AsyncClient
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: original_async_client(transport=transport, **kwargs))

    async with omdb.AsyncOMDbClient("secret", max_concurrent=2) as api:
        result = await api.fetch_episode("Lost", 1, 1)
        assert isinstance(result, Failure)

    assert api.client is None


@pytest.mark.parametrize("max_concurrent", [0, -2])
def test_async_client_rejects_non_positive_concurrency(max_concurrent):
    with pytest.raises(ConfigurationError, match="max_concurrent"):
        omdb.AsyncOMDbClient("secret", max_concurrent=max_concurrent)
