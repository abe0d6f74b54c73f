"""Show normalizer — maps raw TVMaze show records into our ``Show`` model.

Total by construction: any input, including partial or malformed records,
produces a ``Show``. Every field has a documented fallback.
"""

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from streamtracker.models.show import (
    Episode, NextEpisode, Schedule, Service, Show, ShowStatus, UNKNOWN_YEAR,
)


PLACEHOLDER_POSTER = "https://images.unsplash.com/photo-1536440136628-849c177e76a1?w=300&h=450&fit=crop"
NO_SYNOPSIS = "No synopsis available."

# Tested in order, first match wins
SERVICE_PATTERNS = (
    (("netflix",), Service.NETFLIX),
    (("hbo", "max"), Service.MAX),
    (("hulu",), Service.HULU),
    (("apple",), Service.APPLE),
    (("paramount",), Service.PARAMOUNT),
    (("disney",), Service.DISNEY),
    (("amazon", "prime"), Service.PRIME),
)

STATUS_MAP = {
    "Running": ShowStatus.RETURNING,
    "Ended": ShowStatus.ENDED,
    "To Be Determined": ShowStatus.TBD,
    "In Development": ShowStatus.IN_DEVELOPMENT,
}

_TAG_RE = re.compile(r"<[^>]*>")
_SECONDS_PER_DAY = 24 * 60 * 60


def normalize_show(
    raw: Any,
    now: Optional[datetime] = None,
    placeholder_poster: str = PLACEHOLDER_POSTER,
) -> Show:
    """Normalize a TVMaze show (with ``_embedded`` episodes/nextepisode) into a ``Show``."""
    data = raw if isinstance(raw, dict) else {}
    now = now or datetime.now(timezone.utc)

    network = _dict(data.get("network"))
    web_channel = _dict(data.get("webChannel"))
    channel = data.get("network") or data.get("webChannel")
    embedded = _dict(data.get("_embedded"))
    raw_episodes = embedded.get("episodes")
    episodes = tuple(
        _normalize_episode(ep) for ep in _list(raw_episodes) if isinstance(ep, dict)
    )
    premiered = _parse_date(data.get("premiered"))
    show_runtime = _int(data.get("runtime"))

    return Show(
        id=_int(data.get("id")),
        title=_str(data.get("name")) or "",
        poster_url=_image_url(data.get("image")) or placeholder_poster,
        rating=_float(_dict(data.get("rating")).get("average")) or 0.0,
        year=premiered.year if premiered else UNKNOWN_YEAR,
        premiered=premiered,
        ended=_parse_date(data.get("ended")),
        status=map_status(data.get("status")),
        original_status=_str(data.get("status")),
        service=classify_service(channel),
        network_name=_str(network.get("name")) or _str(web_channel.get("name")) or "Unknown",
        genres=tuple(g for g in _list(data.get("genres")) if isinstance(g, str)),
        language=_str(data.get("language")) or "English",
        runtime=show_runtime or _int(data.get("averageRuntime")),
        schedule=_normalize_schedule(data.get("schedule"), network, web_channel),
        next_episode=_normalize_next_episode(embedded.get("nextepisode"), show_runtime, now),
        total_seasons=max((ep.season or 1 for ep in episodes), default=1),
        synopsis=strip_tags(data.get("summary")) or NO_SYNOPSIS,
        official_site=_str(data.get("officialSite")),
        episodes=episodes,
    )


def classify_service(channel: Any) -> str:
    """Map a network / web channel object to a streaming brand."""
    if not channel:
        return Service.OTHER
    name = _str(_dict(channel).get("name")) or ""
    lowered = name.lower()
    for needles, service in SERVICE_PATTERNS:
        if any(n in lowered for n in needles):
            return service
    return name or Service.OTHER


def map_status(status: Any) -> str:
    """Map the upstream status; unknown values pass through, absence → Unknown."""
    status = _str(status)
    if not status:
        return ShowStatus.UNKNOWN
    return STATUS_MAP.get(status, status)


def strip_tags(text: Any) -> Optional[str]:
    """Remove every ``<...>`` span. Empty or missing input → ``None``."""
    if not isinstance(text, str) or not text:
        return None
    return _TAG_RE.sub("", text) or None


def days_until(air_date: Optional[date], now: datetime) -> Optional[int]:
    """Whole days until ``air_date`` (midnight UTC), rounded up. Negative once past."""
    if air_date is None:
        return None
    air_at = datetime(air_date.year, air_date.month, air_date.day, tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.ceil((air_at - now).total_seconds() / _SECONDS_PER_DAY)


# ── Internal helpers ─────────────────────────────────────────────

def _normalize_schedule(raw: Any, network: dict, web_channel: dict) -> Optional[Schedule]:
    if not isinstance(raw, dict):
        return None
    days = tuple(d for d in _list(raw.get("days")) if isinstance(d, str))
    time_ = _str(raw.get("time"))
    if not days and not time_:
        return None
    tz = (
        _str(_dict(network.get("country")).get("timezone"))
        or _str(_dict(web_channel.get("country")).get("timezone"))
        or "Unknown"
    )
    return Schedule(days=days, time=time_, timezone=tz)


def _normalize_next_episode(raw: Any, show_runtime: Optional[int], now: datetime) -> Optional[NextEpisode]:
    if not isinstance(raw, dict) or not raw:
        return None
    air_date = _parse_date(raw.get("airdate"))
    return NextEpisode(
        season=_int(raw.get("season")),
        number=_int(raw.get("number")),
        air_date=air_date,
        air_time=_str(raw.get("airtime")),
        title=_str(raw.get("name")) or "TBA",
        days_until=days_until(air_date, now),
        runtime=_int(raw.get("runtime")) or show_runtime,
    )


def _normalize_episode(raw: dict) -> Episode:
    return Episode(
        id=_int(raw.get("id")),
        season=_int(raw.get("season")),
        number=_int(raw.get("number")),
        name=_str(raw.get("name")),
        air_date=_parse_date(raw.get("airdate")),
        runtime=_int(raw.get("runtime")),
        image_url=_image_url(raw.get("image")),
        summary=strip_tags(raw.get("summary")),
    )


def _image_url(image: Any) -> Optional[str]:
    image = _dict(image)
    return _str(image.get("medium")) or _str(image.get("original"))


def _parse_date(value: Any) -> Optional[date]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return None
