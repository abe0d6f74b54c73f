"""Shared fixtures: a fixed clock, raw TVMaze records, and in-memory collaborators."""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import httpx
import pytest

from streamtracker.clients.base import ICatalogSource, IUserStore, StoreError
from streamtracker.models.show import NextEpisode, Show, ShowStatus

# Midnight UTC, so an episode airing tomorrow is exactly 24 hours away
NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def raw_show(
    show_id: int = 1,
    name: str = "Test Show",
    network: Optional[str] = "Netflix",
    status: str = "Running",
    genres: tuple = ("Drama",),
    rating: Optional[float] = 8.0,
    next_airdate: Optional[str] = None,
    seasons: tuple = (1,),
    **extra: Any,
) -> dict:
    """A TVMaze-shaped show record with embedded episodes."""
    episodes = [
        {"id": show_id * 1000 + i, "season": season, "number": i + 1, "name": f"Episode {i + 1}",
         "airdate": "2020-01-01", "runtime": 60, "image": None, "summary": "<p>Recap.</p>"}
        for i, season in enumerate(seasons)
    ]
    record = {
        "id": show_id,
        "name": name,
        "status": status,
        "genres": list(genres),
        "rating": {"average": rating},
        "premiered": "2019-03-10",
        "ended": None,
        "runtime": 60,
        "language": "English",
        "officialSite": None,
        "schedule": {"time": "21:00", "days": ["Sunday"]},
        "network": {"name": network, "country": {"timezone": "America/New_York"}} if network else None,
        "webChannel": None,
        "image": {"medium": f"https://img.example/{show_id}.jpg"},
        "summary": f"<p>{name} <b>summary</b>.</p>",
        "_embedded": {"episodes": episodes},
    }
    if next_airdate:
        record["_embedded"]["nextepisode"] = {
            "season": 2, "number": 1, "name": "Return", "airdate": next_airdate, "airtime": "21:00",
        }
    record.update(extra)
    return record


def make_show(
    show_id: int = 1,
    title: str = "Test Show",
    service: str = "Netflix",
    status: str = ShowStatus.RETURNING,
    genres: tuple = ("Drama",),
    rating: float = 8.0,
    airs_in_days: Optional[int] = None,
    next_episode: Optional[NextEpisode] = None,
    episodes: tuple = (),
) -> Show:
    """A normalized show built directly, for analytics and notifier tests."""
    if next_episode is None and airs_in_days is not None:
        air_date = NOW.date() + timedelta(days=airs_in_days)
        next_episode = NextEpisode(
            season=1, number=2, air_date=air_date, title="Pilot", days_until=airs_in_days,
        )
    return Show(
        id=show_id,
        title=title,
        poster_url="https://img.example/poster.jpg",
        rating=rating,
        status=status,
        service=service,
        genres=genres,
        next_episode=next_episode,
        episodes=episodes,
    )


# ── Fakes ────────────────────────────────────────────────────────

class FakeUserStore(IUserStore):
    """Account store held in a dict; records every write."""

    def __init__(self, data: Optional[dict] = None):
        self.data = data or {}
        self.writes: list[tuple[str, str, Any]] = []
        self.fail_reads = False
        self.fail_writes = False

    async def read(self, account_id: str, path: str = "") -> Any:
        if self.fail_reads:
            raise StoreError("store offline")
        value = self.data.get(account_id)
        for key in filter(None, path.split("/")):
            value = value.get(key) if isinstance(value, dict) else None
        return value

    async def write(self, account_id: str, path: str, value: Any) -> bool:
        if self.fail_writes:
            return False
        self.writes.append((account_id, path, value))
        if not path:
            self.data[account_id] = value
        else:
            self.data.setdefault(account_id, {})[path] = value
        return True


class FakeCatalogSource(ICatalogSource):
    """Catalog source serving a fixed set of raw records."""

    def __init__(self, shows: Optional[list[dict]] = None, schedule_ids: tuple = ()):
        self.shows = {s["id"]: s for s in (shows or [])}
        self.schedule_ids = schedule_ids

    async def get_show(self, show_id: int) -> dict:
        if show_id not in self.shows:
            request = httpx.Request("GET", f"https://api.tvmaze.test/shows/{show_id}")
            raise httpx.HTTPStatusError(
                "Not Found", request=request, response=httpx.Response(404, request=request),
            )
        return self.shows[show_id]

    async def get_shows(self, show_ids: list[int]) -> list[dict]:
        return [self.shows[i] for i in show_ids if i in self.shows]

    async def single_search(self, name: str) -> Optional[dict]:
        for show in self.shows.values():
            if show["name"].lower() == name.lower():
                return show
        return None

    async def search(self, query: str) -> list[dict]:
        return [s for s in self.shows.values() if query.lower() in s["name"].lower()]

    async def get_schedule(self, day: date, country: str) -> list[dict]:
        return [{"airdate": day.isoformat(), "show": self.shows[i]} for i in self.schedule_ids]

    async def get_shows_page(self, page: int = 0) -> list[dict]:
        return list(self.shows.values()) if page == 0 else []

    async def get_updates(self) -> dict[str, int]:
        return {str(i): 1_700_000_000 + i for i in self.shows}

    async def test_connection(self) -> bool:
        return True


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return FakeUserStore()


@pytest.fixture
def source():
    return FakeCatalogSource([
        raw_show(1, "Stranger Things", network="Netflix", genres=("Drama", "Horror"), rating=8.7,
                 next_airdate="2024-06-02"),
        raw_show(2, "The Last of Us", network="HBO", genres=("Drama", "Action"), rating=8.9,
                 status="Ended"),
        raw_show(3, "The Bear", network="FX on Hulu", genres=("Comedy", "Drama"), rating=8.4),
    ])
