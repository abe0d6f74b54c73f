import asyncio
import json

import httpx
import pytest

from streamtracker.clients.base import StoreError
from streamtracker.clients.firebase import FirebaseUserStore
from streamtracker.clients.tvmaze import TvMazeClient


def _tvmaze(handler):
    return TvMazeClient("https://api.tvmaze.test", transport=httpx.MockTransport(handler))


def _firebase(handler, token="secret"):
    return FirebaseUserStore(
        "https://demo.firebaseio.test/", auth_token=token, transport=httpx.MockTransport(handler),
    )


# ── TVMaze ───────────────────────────────────────────────────────

def test_get_show_requests_embeds():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["embeds"] = request.url.params.get_list("embed[]")
        return httpx.Response(200, json={"id": 5, "name": "Dark"})

    show = asyncio.run(_tvmaze(handler).get_show(5))
    assert show["name"] == "Dark"
    assert seen == {"path": "/shows/5", "embeds": ["episodes", "nextepisode"]}


def test_get_shows_drops_failed_fetches():
    def handler(request):
        if request.url.path == "/shows/2":
            return httpx.Response(404)
        if request.url.path == "/shows/3":
            raise httpx.ConnectError("down", request=request)
        return httpx.Response(200, json={"id": int(request.url.path.rsplit("/", 1)[1])})

    shows = asyncio.run(_tvmaze(handler).get_shows([1, 2, 3, 4]))
    assert [s["id"] for s in shows] == [1, 4]


def test_single_search_miss_is_none():
    client = _tvmaze(lambda request: httpx.Response(404))
    assert asyncio.run(client.single_search("No Such Show")) is None


def test_single_search_server_error_raises():
    client = _tvmaze(lambda request: httpx.Response(500))
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.single_search("Dark"))


def test_search_unwraps_results():
    def handler(request):
        assert request.url.params["q"] == "office"
        return httpx.Response(200, json=[
            {"score": 0.9, "show": {"id": 526, "name": "The Office"}},
            {"score": 0.5, "show": None},
        ])

    assert asyncio.run(_tvmaze(handler).search("office")) == [{"id": 526, "name": "The Office"}]


def test_schedule_params():
    from datetime import date

    def handler(request):
        assert request.url.path == "/schedule"
        assert request.url.params["country"] == "GB"
        assert request.url.params["date"] == "2024-06-01"
        return httpx.Response(200, json=[])

    assert asyncio.run(_tvmaze(handler).get_schedule(date(2024, 6, 1), "GB")) == []


def test_tvmaze_connection_check():
    assert asyncio.run(_tvmaze(lambda r: httpx.Response(200, json={})).test_connection()) is True
    assert asyncio.run(_tvmaze(lambda r: httpx.Response(503)).test_connection()) is False


# ── Firebase ─────────────────────────────────────────────────────

def test_read_path_and_auth():
    def handler(request):
        assert request.method == "GET"
        assert request.url.path == "/users/u1/preferences.json"
        assert request.url.params["auth"] == "secret"
        return httpx.Response(200, json={"displayMode": "today"})

    assert asyncio.run(_firebase(handler).read("u1", "preferences")) == {"displayMode": "today"}


def test_read_whole_document_without_token():
    def handler(request):
        assert request.url.path == "/users/u1.json"
        assert "auth" not in request.url.params
        return httpx.Response(200, content=b"null")

    assert asyncio.run(_firebase(handler, token=None).read("u1")) is None


@pytest.mark.parametrize("handler", [
    lambda request: httpx.Response(500),
    lambda request: httpx.Response(200, content=b"<html>"),
])
def test_read_failures_raise_store_error(handler):
    with pytest.raises(StoreError):
        asyncio.run(_firebase(handler).read("u1"))


def test_read_unreachable_raises_store_error():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(StoreError):
        asyncio.run(_firebase(handler).read("u1"))


def test_write_puts_value():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=captured["body"])

    ok = asyncio.run(_firebase(handler).write("u1", "trackedShows", [1, 2]))
    assert ok is True
    assert captured == {"method": "PUT", "path": "/users/u1/trackedShows.json", "body": [1, 2]}


def test_account_id_is_a_single_escaped_segment():
    captured = {}

    def handler(request):
        captured["path"] = request.url.raw_path.partition(b"?")[0]
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json=[3])

    ok = asyncio.run(_firebase(handler).write("a?b/c", "trackedShows", [3]))
    assert ok is True
    assert captured == {
        "path": b"/users/a%3Fb%2Fc/trackedShows.json",
        "params": {"auth": "secret"},
    }


def test_write_failure_returns_false():
    assert asyncio.run(_firebase(lambda r: httpx.Response(401)).write("u1", "", {})) is False
