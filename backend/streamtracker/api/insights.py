"""Insights endpoint — service usage, subscription advice and suggestions."""

import logging
from dataclasses import asdict
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends

from streamtracker.api.deps import get_catalog, get_library_service
from streamtracker.api.shows import show_payload
from streamtracker.services.analytics import (
    compute_recommendations, compute_service_usage, compute_suggestions, monthly_cost,
)
from streamtracker.services.catalog import CatalogService
from streamtracker.services.library import LibraryService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users/{account_id}/insights")
async def get_insights(
    account_id: str,
    service: LibraryService = Depends(get_library_service),
    catalog: CatalogService = Depends(get_catalog),
):
    """Per-service usage, subscription recommendations and show suggestions.

    Library shows are fetched by id so every tracked show counts; suggestion
    candidates come from the account's current display mode. If that list
    cannot be fetched, suggestions are drawn from the library shows alone.
    """
    now = datetime.now(timezone.utc)
    library = await service.load(account_id)
    prefs = library.preferences

    library_ids = list(dict.fromkeys(
        library.tracked_show_ids + library.favorite_show_ids + library.completed_show_ids
    ))
    shows = await catalog.get_shows(library_ids, now=now)
    known = {show.id for show in shows}
    try:
        browse = await catalog.load(prefs.display_mode, now=now)
    except httpx.HTTPError as e:
        logger.warning("Suggestion candidates for %s unavailable: %s", account_id, e)
        browse = []
    shows += [s for s in browse if s.id not in known]

    usage = compute_service_usage(library, shows, now)
    recommendations = compute_recommendations(usage)
    suggestions = compute_suggestions(library, shows)

    return {
        "usage": {name: asdict(stats) for name, stats in usage.items()},
        "recommendations": [asdict(r) for r in recommendations],
        "suggestions": [
            {"show": show_payload(s.show), "match_score": round(s.match_score, 2)}
            for s in suggestions
        ],
        "monthly_cost": monthly_cost(prefs.subscriptions),
    }
