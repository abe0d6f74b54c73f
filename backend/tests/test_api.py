import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeCatalogSource, FakeUserStore, raw_show
from streamtracker.api.deps import get_catalog, get_library_service
from streamtracker.main import app
from streamtracker.services.catalog import CatalogService
from streamtracker.services.library import LibraryService

# No context manager: startup (cache tables, integration probes, monitor) stays off
client = TestClient(app)
API = "/api/v1"


@pytest.fixture(autouse=True)
def services(source):
    store = FakeUserStore()
    app.dependency_overrides[get_catalog] = lambda: CatalogService(source)
    app.dependency_overrides[get_library_service] = lambda: LibraryService(store)
    yield store
    app.dependency_overrides.clear()


def test_health():
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["integrations"] == {}


# ── Shows ────────────────────────────────────────────────────────

def test_list_shows_by_mode():
    r = client.get(f"{API}/shows", params={"mode": "topRated"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert [s["id"] for s in body["shows"]] == [2, 1, 3]
    assert body["total"] == 3
    assert "episodes" not in body["shows"][0]


def test_list_shows_filters():
    r = client.get(f"{API}/shows", params={"mode": "topRated", "service": "Max"})
    assert [s["title"] for s in r.json()["shows"]] == ["The Last of Us"]

    r = client.get(f"{API}/shows", params={"q": "bear"})
    assert [s["id"] for s in r.json()["shows"]] == [3]


def test_list_shows_by_genre(source):
    source.shows[4] = raw_show(4, "Drama Club", genres=("Drama",))
    r = client.get(f"{API}/shows", params={"genre": "Drama"})
    assert [s["id"] for s in r.json()["shows"]] == [4]


def test_list_shows_unknown_mode():
    assert client.get(f"{API}/shows", params={"mode": "sideways"}).status_code == 400


def test_show_detail():
    r = client.get(f"{API}/shows/1")
    assert r.status_code == 200
    show = r.json()
    assert show["service"] == "Netflix"
    assert show["next_episode"]["code"] == "S2E1"
    assert show["next_episode"]["air_date"] == "2024-06-02"
    assert len(show["episodes"]) == 1


def test_show_detail_not_found():
    assert client.get(f"{API}/shows/999").status_code == 404


# ── Library ──────────────────────────────────────────────────────

def test_library_created_on_first_access(services):
    r = client.get(f"{API}/users/u1/library", params={"email": "ada@example.com"})
    assert r.status_code == 200
    assert r.json()["displayName"] == "ada"
    assert services.data["u1"]["email"] == "ada@example.com"


@pytest.mark.parametrize("list_name,key", [
    ("tracked", "trackedShows"),
    ("favorites", "favoriteShows"),
    ("watchlist", "watchlistShows"),
    ("completed", "completedShows"),
])
def test_toggle_lists(list_name, key):
    r = client.post(f"{API}/users/u1/{list_name}/3")
    assert r.json() == {"show_id": 3, "list": list_name, "member": True}
    assert client.get(f"{API}/users/u1/library").json()[key] == [3]

    r = client.post(f"{API}/users/u1/{list_name}/3")
    assert r.json()["member"] is False


def test_episode_toggle_and_progress():
    assert client.get(f"{API}/users/u1/progress/1").json() == {"show_id": 1, "progress": 0}

    r = client.post(f"{API}/users/u1/episodes/1/1/1")
    assert r.json()["watched"] is True
    assert client.get(f"{API}/users/u1/progress/1").json()["progress"] == 100


def test_update_preferences():
    r = client.put(f"{API}/users/u1/preferences", json={
        "subscriptions": ["Netflix"],
        "display_mode": "today",
        "notifications": {"week_before": True},
    })
    assert r.status_code == 200, r.text
    prefs = r.json()
    assert prefs["subscriptions"] == ["Netflix"]
    assert prefs["displayMode"] == "today"
    assert prefs["notifications"]["weekBefore"] is True
    assert prefs["notifications"]["dayBefore"] is True


def test_update_preferences_rejects_unknown_mode(services):
    r = client.put(f"{API}/users/u1/preferences", json={"display_mode": "sideways"})
    assert r.status_code == 400
    assert "preferences" not in services.data.get("u1", {})


def test_toggle_subscription():
    r = client.post(f"{API}/users/u1/subscriptions/Hulu")
    assert r.json()["subscribed"] is False
    assert "Hulu" not in r.json()["subscriptions"]
    assert client.post(f"{API}/users/u1/subscriptions/Hulu").json()["subscribed"] is True


# ── Insights ─────────────────────────────────────────────────────

def test_insights(services):
    services.data["u1"] = {
        "trackedShows": [1, 2],
        "preferences": {"subscriptions": ["Netflix", "Max", "Hulu"]},
    }
    r = client.get(f"{API}/users/u1/insights")
    assert r.status_code == 200, r.text
    body = r.json()

    assert list(body["usage"]) == ["Netflix", "Max", "Hulu"]
    assert body["usage"]["Max"] == {"total": 1, "active": 0, "ended": 1, "upcoming": 0, "on_hiatus": 0}
    assert [(rec["service"], rec["type"]) for rec in body["recommendations"]] == [
        ("Netflix", "pause"), ("Max", "pause"), ("Hulu", "unused"),
    ]
    assert body["suggestions"] == []
    assert body["monthly_cost"] == pytest.approx(50.47)


class RateLimitedSchedule(FakeCatalogSource):
    async def get_schedule(self, day, country):
        request = httpx.Request("GET", "https://api.tvmaze.test/schedule")
        raise httpx.HTTPStatusError(
            "Too Many Requests", request=request, response=httpx.Response(429, request=request),
        )


def test_insights_without_suggestion_candidates(services, source):
    app.dependency_overrides[get_catalog] = lambda: CatalogService(
        RateLimitedSchedule(list(source.shows.values()))
    )
    services.data["u1"] = {
        "trackedShows": [1],
        "preferences": {"displayMode": "today", "subscriptions": ["Netflix"]},
    }
    r = client.get(f"{API}/users/u1/insights")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["usage"]["Netflix"]["total"] == 1
    assert body["suggestions"] == []


# ── Notifications ────────────────────────────────────────────────

def _seed_notifications(store):
    store.data["u1"] = {"notifications": [
        {"id": "b", "timestamp": "2024-06-02T00:00:00+00:00", "type": "dayBefore",
         "title": "Tomorrow: Dark", "message": "S1E1: Secrets airs tomorrow!", "read": False},
        {"id": "a", "timestamp": "2024-06-01T00:00:00+00:00", "type": "newEpisode",
         "title": "Dark - New Episode!", "message": "S1E1: Secrets airs in 1 hour", "read": False},
    ]}


def test_notification_log(services):
    _seed_notifications(services)
    body = client.get(f"{API}/users/u1/notifications").json()
    assert [n["id"] for n in body["notifications"]] == ["b", "a"]
    assert body["unread"] == 2

    assert client.post(f"{API}/users/u1/notifications/a/read").json() == {"unread": 1}
    assert client.post(f"{API}/users/u1/notifications/read-all").json() == {"unread": 0}
    assert all(n["read"] for n in services.data["u1"]["notifications"])


def test_notification_check(services):
    services.data["u1"] = {"trackedShows": [1, 2, 3]}
    r = client.post(f"{API}/users/u1/notifications/check")
    assert r.status_code == 200
    fired = r.json()["fired"]
    assert len(services.data["u1"].get("notifications", [])) == len(fired)
