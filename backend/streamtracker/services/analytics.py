"""Library analytics — service usage, subscription advice, show suggestions.

All functions are pure: they take the user's library and the current catalog
snapshot and derive view models. Callers recompute after every mutation or
catalog refresh.

Ids in the library that don't resolve to a catalog show are skipped.
"""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from streamtracker.models.library import UserLibrary
from streamtracker.models.show import Show, ShowStatus
from streamtracker.services.normalizer import days_until


# Monthly USD list prices for the subscriptions screen
SERVICE_PRICES = {
    "Netflix": 15.49,
    "Max": 16.99,
    "Hulu": 17.99,
    "Apple TV+": 9.99,
    "Paramount+": 11.99,
    "Disney+": 13.99,
    "Prime Video": 8.99,
}

# ── Thresholds ───────────────────────────────────────────────────

ACTIVE_WINDOW_DAYS = (-7, 60)     # aired in the last week or airing within two months
UPCOMING_WINDOW_DAYS = 30
VALUE_MIN_ACTIVE = 3
SUGGESTION_MIN_RATING = 7.0
SUGGESTION_TOP_N = 3
SUGGESTION_LIMIT = 5


@dataclass
class ServiceUsage:
    """Per-service counters of the user's tracked shows."""
    total: int = 0
    active: int = 0
    ended: int = 0
    upcoming: int = 0
    on_hiatus: int = 0


@dataclass
class ServiceRecommendation:
    """Subscription advice for one service."""
    type: str          # "unused" | "pause" | "resume" | "value"
    service: str
    message: str
    show_count: int


@dataclass
class Suggestion:
    """A suggested show and how well it matches the user's taste."""
    show: Show
    match_score: float


def index_catalog(catalog: Iterable[Show]) -> dict[int, Show]:
    """Map show id → show. The first occurrence of an id wins."""
    index: dict[int, Show] = {}
    for show in catalog:
        if show.id is not None and show.id not in index:
            index[show.id] = show
    return index


def tracked_shows(library: UserLibrary, catalog: Iterable[Show]) -> list[Show]:
    """Catalog shows the user tracks, in catalog order."""
    tracked = set(library.tracked_show_ids)
    return [show for show in catalog if show.id in tracked]


# ── Service usage ────────────────────────────────────────────────

def compute_service_usage(
    library: UserLibrary,
    catalog: Iterable[Show],
    now: datetime,
) -> dict[str, ServiceUsage]:
    """Count tracked shows per subscribed service by airing state.

    Each show lands in at most one of ended / active(+upcoming) / on_hiatus.
    Subscribed services with no tracked shows are included with zero counts.
    """
    subscribed = library.preferences.subscriptions
    index = index_catalog(catalog)
    usage: dict[str, ServiceUsage] = {}

    for show_id in library.tracked_show_ids:
        show = index.get(show_id)
        if show is None or show.service not in subscribed:
            continue

        stats = usage.setdefault(show.service, ServiceUsage())
        stats.total += 1

        next_ep = show.next_episode
        if show.status == ShowStatus.ENDED:
            stats.ended += 1
        elif next_ep is not None and next_ep.air_date is not None:
            days = days_until(next_ep.air_date, now)
            low, high = ACTIVE_WINDOW_DAYS
            if low <= days <= high:
                stats.active += 1
                if 0 < days <= UPCOMING_WINDOW_DAYS:
                    stats.upcoming += 1
        elif show.status in (ShowStatus.RETURNING, ShowStatus.IN_DEVELOPMENT):
            stats.on_hiatus += 1

    for service in subscribed:
        usage.setdefault(service, ServiceUsage())

    return usage


# ── Subscription recommendations ─────────────────────────────────

def compute_recommendations(usage: dict[str, ServiceUsage]) -> list[ServiceRecommendation]:
    """At most one recommendation per service; rules are checked in priority order."""
    recommendations = []
    for service, stats in usage.items():
        rec = _recommend(service, stats)
        if rec is not None:
            recommendations.append(rec)
    return recommendations


def _recommend(service: str, stats: ServiceUsage) -> Optional[ServiceRecommendation]:
    if stats.total == 0:
        return ServiceRecommendation(
            type="unused",
            service=service,
            message=(
                f"You're subscribed to {service} but aren't tracking any shows. "
                "Consider canceling or finding shows to watch!"
            ),
            show_count=0,
        )
    if stats.active == 0 and stats.upcoming == 0:
        return ServiceRecommendation(
            type="pause",
            service=service,
            message=f"No active shows on {service}. Consider pausing your subscription until your shows return.",
            show_count=stats.total,
        )
    if stats.upcoming > 0 and stats.active == 0:
        return ServiceRecommendation(
            type="resume",
            service=service,
            message=f"{stats.upcoming} show(s) returning soon on {service}! Good time to reactivate if paused.",
            show_count=stats.upcoming,
        )
    if stats.active >= VALUE_MIN_ACTIVE:
        return ServiceRecommendation(
            type="value",
            service=service,
            message=f"Great value on {service}! You have {stats.active} active shows to watch.",
            show_count=stats.active,
        )
    return None


# ── Show suggestions ─────────────────────────────────────────────

def compute_suggestions(
    library: UserLibrary,
    catalog: Iterable[Show],
    limit: int = SUGGESTION_LIMIT,
) -> list[Suggestion]:
    """Suggest highly rated catalog shows matching the user's favorite genres/services.

    The taste pool is favorites plus completed shows. Top genres and services
    are ranked by count, ties broken by first encounter, so the result depends
    on catalog order.
    """
    catalog = list(catalog)
    favorites = set(library.favorite_show_ids)
    completed = set(library.completed_show_ids)

    pool: list[Show] = []
    seen: set[int] = set()
    for wanted in (favorites, completed):
        for show in catalog:
            if show.id in wanted and show.id not in seen:
                pool.append(show)
                seen.add(show.id)

    if not pool:
        return []

    genre_count: Counter = Counter()
    service_count: Counter = Counter()
    for show in pool:
        genre_count.update(show.genres)
        service_count[show.service] += 1

    # most_common keeps first-encounter order among equal counts
    top_genres = [g for g, _ in genre_count.most_common(SUGGESTION_TOP_N)]
    top_services = [s for s, _ in service_count.most_common(SUGGESTION_TOP_N)]

    excluded = (
        set(library.tracked_show_ids) | favorites | completed | set(library.watchlist_show_ids)
    )

    candidates = []
    for show in catalog:
        if show.id in excluded or show.rating < SUGGESTION_MIN_RATING:
            continue
        genre_hits = sum(1 for g in top_genres if g in show.genres)
        service_hit = show.service in top_services
        if not genre_hits and not service_hit:
            continue
        score = genre_hits * 2 + (1 if service_hit else 0) + show.rating / 10
        candidates.append(Suggestion(show=show, match_score=score))

    candidates.sort(key=lambda s: s.match_score, reverse=True)
    return candidates[:limit]


# ── Progress & cost ──────────────────────────────────────────────

def show_progress(library: UserLibrary, show: Optional[Show]) -> int:
    """Percentage of the show's episodes marked watched (0-100)."""
    if show is None or not show.episodes:
        return 0
    watched = sum(
        1 for ep in show.episodes
        if library.is_watched(show.id, ep.season, ep.number)
    )
    return _round_half_up(watched / len(show.episodes) * 100)


def monthly_cost(subscriptions: Iterable[str]) -> float:
    """Total monthly price of the subscribed services we know prices for."""
    return round(sum(SERVICE_PRICES.get(s, 0.0) for s in subscriptions), 2)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
