"""TVMaze client — show details, schedule, search and index pages.

Returns raw TVMaze JSON; ``services.normalizer`` turns it into ``Show`` values.
No API key needed.
"""

import asyncio
import logging
from datetime import date
from typing import Optional

import httpx

from streamtracker.clients.base import ICatalogSource

logger = logging.getLogger(__name__)


class TvMazeClient(ICatalogSource):
    """TVMaze public API client."""

    BASE_URL = "https://api.tvmaze.com"
    SHOW_EMBEDS = [("embed[]", "episodes"), ("embed[]", "nextepisode")]

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get(self, path: str, params=None):
        """GET a TVMaze endpoint and return decoded JSON."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(f"{self.base_url}{path}", params=params)
            resp.raise_for_status()
            return resp.json()

    # ── Show details ─────────────────────────────────────────────

    async def get_show(self, show_id: int) -> dict:
        """Show with embedded episode list and next episode."""
        return await self._get(f"/shows/{show_id}", self.SHOW_EMBEDS)

    async def get_shows(self, show_ids: list[int]) -> list[dict]:
        """Fetch many shows in parallel; one failure never sinks the batch."""
        results = await asyncio.gather(
            *(self.get_show(show_id) for show_id in show_ids),
            return_exceptions=True,
        )
        shows = []
        for show_id, result in zip(show_ids, results):
            if isinstance(result, Exception):
                logger.warning("Dropping show %s: %s", show_id, result)
                continue
            if isinstance(result, dict) and result:
                shows.append(result)
        return shows

    # ── Search ───────────────────────────────────────────────────

    async def single_search(self, name: str) -> Optional[dict]:
        """Best single match for a title, with embeds."""
        try:
            return await self._get("/singlesearch/shows", [("q", name), *self.SHOW_EMBEDS])
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    async def search(self, query: str) -> list[dict]:
        """Free text search. Unwraps TVMaze's ``{"score", "show"}`` envelope."""
        results = await self._get("/search/shows", {"q": query})
        return [r["show"] for r in results if isinstance(r, dict) and r.get("show")]

    # ── Discovery ────────────────────────────────────────────────

    async def get_schedule(self, day: date, country: str = "US") -> list[dict]:
        """Episodes airing on a given day, each with its ``show`` embedded."""
        return await self._get("/schedule", {"country": country, "date": day.isoformat()})

    async def get_shows_page(self, page: int = 0) -> list[dict]:
        """Index page — 250 shows per page, ordered by id."""
        return await self._get("/shows", {"page": page})

    async def get_updates(self) -> dict[str, int]:
        """Every show id with its last-updated timestamp."""
        return await self._get("/updates/shows")

    # ── Test connection ──────────────────────────────────────────

    async def test_connection(self) -> bool:
        try:
            await self._get("/shows/1")
            return True
        except httpx.HTTPError:
            return False
