"""Catalog service — builds the browsable show list for each display mode.

Fetches raw records through an ``ICatalogSource`` and runs them through the
normalizer. Per-show fetch failures are dropped by the source, so a partial
catalog is a normal result.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from streamtracker.clients.base import ICatalogSource
from streamtracker.models.library import DisplayMode
from streamtracker.models.show import Service, Show
from streamtracker.services.normalizer import PLACEHOLDER_POSTER, normalize_show

logger = logging.getLogger(__name__)


# Curated "Popular" list, grouped by where each show streams
POPULAR_TITLES = {
    "netflix": [
        "Stranger Things", "Wednesday", "The Crown", "Bridgerton",
        "Ozark", "The Witcher", "Squid Game", "You", "Dark",
        "Narcos", "Black Mirror", "Money Heist", "Arcane",
    ],
    "hbo": [
        "Game of Thrones", "House of the Dragon", "The Last of Us",
        "Succession", "Euphoria", "The White Lotus", "True Detective",
        "Westworld", "Chernobyl", "The Sopranos", "The Wire",
    ],
    "hulu": [
        "The Handmaids Tale", "Only Murders in the Building", "The Bear",
        "Castle Rock", "Little Fires Everywhere", "Dopesick",
    ],
    "apple": [
        "Ted Lasso", "Severance", "The Morning Show", "Foundation",
        "For All Mankind", "Silo", "See",
    ],
    "paramount": [
        "Star Trek Discovery", "Yellowstone", "1923", "Halo",
        "Evil", "The Good Fight",
    ],
    "disney": [
        "The Mandalorian", "Loki", "WandaVision", "Andor",
        "Ahsoka", "The Falcon and the Winter Soldier", "Obi-Wan Kenobi",
    ],
    "prime": [
        "The Boys", "The Rings of Power", "Reacher", "Jack Ryan",
        "The Marvelous Mrs Maisel", "The Expanse", "Invincible",
    ],
    "network": [
        "Breaking Bad", "Better Call Saul", "The Office", "Friends",
        "Lost", "The Walking Dead", "Supernatural", "Greys Anatomy",
    ],
}

DETAIL_LIMIT = 50          # detail fetches per list mode
SEARCH_LIMIT = 50
GENRE_LIMIT = 100


class CatalogService:
    """Loads and filters normalized shows."""

    def __init__(
        self,
        source: ICatalogSource,
        country: str = "US",
        placeholder_poster: str = PLACEHOLDER_POSTER,
    ):
        self.source = source
        self.country = country
        self.placeholder_poster = placeholder_poster

    async def load(self, mode: str = DisplayMode.POPULAR, page: int = 0, now: Optional[datetime] = None) -> list[Show]:
        """Show list for a display mode."""
        now = now or datetime.now(timezone.utc)
        if mode == DisplayMode.TODAY:
            return await self.todays_shows(now)
        if mode == DisplayMode.TOP_RATED:
            return await self.top_rated(now)
        if mode == DisplayMode.RECENTLY_UPDATED:
            return await self.recently_updated(now)
        if mode == DisplayMode.BROWSE_ALL:
            return await self.browse_all(page, now)
        if mode in (DisplayMode.POPULAR, DisplayMode.MY_SERVICES, DisplayMode.ALL):
            return await self.popular(now)
        raise ValueError(f"Unknown display mode: {mode}")

    # ── Display modes ────────────────────────────────────────────

    async def todays_shows(self, now: datetime) -> list[Show]:
        """Every show with an episode on today's schedule."""
        schedule = await self.source.get_schedule(now.date(), self.country)
        show_ids = _unique(
            entry["show"]["id"] for entry in schedule
            if isinstance(entry, dict) and isinstance(entry.get("show"), dict) and "id" in entry["show"]
        )
        return await self.get_shows(show_ids, now=now)

    async def popular(self, now: datetime) -> list[Show]:
        """The curated popular list, deduplicated by show id."""
        names = [name for titles in POPULAR_TITLES.values() for name in titles]
        results = await asyncio.gather(
            *(self.source.single_search(name) for name in names),
            return_exceptions=True,
        )
        raw_shows, seen = [], set()
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.warning("Popular lookup for %r failed: %s", name, result)
                continue
            if not isinstance(result, dict) or result.get("id") in seen:
                continue
            seen.add(result.get("id"))
            raw_shows.append(result)
        return self._normalize_all(raw_shows, now)

    async def top_rated(self, now: datetime) -> list[Show]:
        """Highest rated shows of the first index page."""
        page = await self.source.get_shows_page(0)
        rated = [s for s in page if _rating(s)]
        rated.sort(key=_rating, reverse=True)
        return await self.get_shows([s["id"] for s in rated[:DETAIL_LIMIT]], now=now)

    async def recently_updated(self, now: datetime) -> list[Show]:
        updates = await self.source.get_updates()
        recent = sorted(updates, key=lambda show_id: updates[show_id], reverse=True)[:DETAIL_LIMIT]
        return await self.get_shows([int(show_id) for show_id in recent], now=now)

    async def browse_all(self, page: int, now: datetime) -> list[Show]:
        """First shows of an index page."""
        shows = await self.source.get_shows_page(page)
        return await self.get_shows([s["id"] for s in shows[:DETAIL_LIMIT]], now=now)

    # ── Lookups ──────────────────────────────────────────────────

    async def get_shows(self, show_ids: Iterable[int], now: Optional[datetime] = None) -> list[Show]:
        raw_shows = await self.source.get_shows(list(show_ids))
        return self._normalize_all(raw_shows, now or datetime.now(timezone.utc))

    async def get_show(self, show_id: int, now: Optional[datetime] = None) -> Show:
        raw = await self.source.get_show(show_id)
        return normalize_show(raw, now=now, placeholder_poster=self.placeholder_poster)

    async def search(self, query: str, now: Optional[datetime] = None) -> list[Show]:
        """Title search; a blank query falls back to the popular list."""
        now = now or datetime.now(timezone.utc)
        if not query.strip():
            return await self.popular(now)
        results = await self.source.search(query)
        return self._normalize_all(results[:SEARCH_LIMIT], now)

    async def by_genre(self, genre: str, now: Optional[datetime] = None) -> list[Show]:
        results = await self.source.search(genre)
        shows = self._normalize_all(results, now or datetime.now(timezone.utc))
        return [s for s in shows if genre in s.genres][:GENRE_LIMIT]

    def _normalize_all(self, raw_shows: Iterable[dict], now: datetime) -> list[Show]:
        return [
            normalize_show(raw, now=now, placeholder_poster=self.placeholder_poster)
            for raw in raw_shows
        ]


def filter_shows(
    shows: Iterable[Show],
    query: str = "",
    service: str = "all",
    status: str = "all",
    genre: str = "all",
    subscriptions: Iterable[str] = (),
    display_mode: str = DisplayMode.POPULAR,
) -> list[Show]:
    """Browse filters. ``"all"`` disables a filter.

    In ``myServices`` mode only subscribed services (and ``Other``) remain.
    """
    needle = query.lower()
    subscriptions = set(subscriptions)
    filtered = []
    for show in shows:
        if needle and needle not in show.title.lower() and not any(needle in g.lower() for g in show.genres):
            continue
        if service != "all" and show.service != service:
            continue
        if status != "all" and show.status != status:
            continue
        if genre != "all" and genre not in show.genres:
            continue
        if (
            display_mode == DisplayMode.MY_SERVICES
            and show.service not in subscriptions
            and show.service != Service.OTHER
        ):
            continue
        filtered.append(show)
    return filtered


def _unique(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(ids))


def _rating(raw: dict) -> float:
    rating = raw.get("rating") if isinstance(raw, dict) else None
    average = rating.get("average") if isinstance(rating, dict) else None
    return float(average or 0)
