"""Catalog endpoints — browse, search and show detail."""

from dataclasses import asdict
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from streamtracker.api.deps import get_catalog
from streamtracker.models.library import DISPLAY_MODES, DisplayMode
from streamtracker.models.show import Show
from streamtracker.services.catalog import CatalogService, filter_shows

router = APIRouter()


def show_payload(show: Show, episodes: bool = False) -> dict:
    """JSON shape of a show. Episode lists are only sent on detail views."""
    data = asdict(show)
    if not episodes:
        data.pop("episodes")
    if show.next_episode is not None:
        data["next_episode"]["code"] = show.next_episode.code
    return data


@router.get("/shows")
async def list_shows(
    mode: str = Query(DisplayMode.POPULAR),
    page: int = Query(0, ge=0),
    q: Optional[str] = None,
    genre: str = "all",
    service: str = "all",
    status: str = "all",
    subscriptions: list[str] = Query([]),
    catalog: CatalogService = Depends(get_catalog),
):
    """Show list for a display mode, narrowed by the browse filters.

    A non-empty ``q`` searches TVMaze; otherwise a specific ``genre`` searches
    by genre; otherwise the mode's list is loaded.
    """
    if mode not in DISPLAY_MODES:
        raise HTTPException(400, f"Unknown display mode: {mode}")

    if q and q.strip():
        shows = await catalog.search(q)
    elif genre != "all":
        shows = await catalog.by_genre(genre)
    else:
        shows = await catalog.load(mode, page=page)

    shows = filter_shows(
        shows,
        service=service,
        status=status,
        genre=genre,
        subscriptions=subscriptions,
        display_mode=mode,
    )
    return {
        "mode": mode,
        "shows": [show_payload(s) for s in shows],
        "total": len(shows),
    }


async def fetch_show(catalog: CatalogService, show_id: int) -> Show:
    """One normalized show, with TVMaze errors mapped to HTTP errors."""
    try:
        return await catalog.get_show(show_id)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise HTTPException(404, f"Show {show_id} not found")
        raise HTTPException(502, f"TVMaze returned {e.response.status_code}")
    except httpx.HTTPError as e:
        raise HTTPException(502, f"TVMaze unreachable: {e}")


@router.get("/shows/{show_id}")
async def get_show(show_id: int, catalog: CatalogService = Depends(get_catalog)):
    """Full show detail including the episode list."""
    show = await fetch_show(catalog, show_id)
    return show_payload(show, episodes=True)
