"""Canonical show model — what the rest of the app works with.

Every value here is produced by the normalizer from a raw TVMaze record and
is immutable for the lifetime of one fetch cycle.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Optional, Union


# ── Vocabularies ─────────────────────────────────────────────────

class ShowStatus:
    """Display statuses. Unmapped upstream values pass through verbatim."""
    RETURNING = "Returning Series"
    ENDED = "Ended"
    TBD = "TBD"
    IN_DEVELOPMENT = "In Development"
    UNKNOWN = "Unknown"


class Service:
    """Streaming brands a show can be attributed to."""
    NETFLIX = "Netflix"
    MAX = "Max"
    HULU = "Hulu"
    APPLE = "Apple TV+"
    PARAMOUNT = "Paramount+"
    DISNEY = "Disney+"
    PRIME = "Prime Video"
    OTHER = "Other"


KNOWN_SERVICES = (
    Service.NETFLIX, Service.MAX, Service.HULU, Service.APPLE,
    Service.PARAMOUNT, Service.DISNEY, Service.PRIME,
)

UNKNOWN_YEAR = "TBA"


# ── Data Transfer Objects ────────────────────────────────────────

@dataclass(frozen=True)
class Schedule:
    """Weekly airing slot."""
    days: tuple[str, ...] = ()
    time: Optional[str] = None
    timezone: str = "Unknown"


@dataclass(frozen=True)
class NextEpisode:
    """The soonest known upcoming episode of a show."""
    season: Optional[int]
    number: Optional[int]
    air_date: Optional[date]
    air_time: Optional[str] = None
    title: str = "TBA"
    days_until: Optional[int] = None   # ceil(days), negative once aired
    runtime: Optional[int] = None      # minutes

    @property
    def air_at(self) -> Optional[datetime]:
        """Air date as an instant (midnight UTC) — the basis of every time comparison."""
        if self.air_date is None:
            return None
        return datetime.combine(self.air_date, time.min, tzinfo=timezone.utc)

    @property
    def code(self) -> str:
        """Season/episode label, e.g. ``S2E5``."""
        return f"S{self.season}E{self.number}"


@dataclass(frozen=True)
class Episode:
    """A single episode from the embedded episode list."""
    id: Optional[int]
    season: Optional[int]
    number: Optional[int]
    name: Optional[str] = None
    air_date: Optional[date] = None
    runtime: Optional[int] = None
    image_url: Optional[str] = None
    summary: Optional[str] = None     # plain text


@dataclass(frozen=True)
class Show:
    """A normalized show."""
    id: Optional[int]
    title: str
    poster_url: str
    rating: float = 0.0
    year: Union[int, str] = UNKNOWN_YEAR
    premiered: Optional[date] = None
    ended: Optional[date] = None
    status: str = ShowStatus.UNKNOWN
    original_status: Optional[str] = None
    service: str = Service.OTHER
    network_name: str = "Unknown"
    genres: tuple[str, ...] = ()
    language: str = "English"
    runtime: Optional[int] = None
    schedule: Optional[Schedule] = None
    next_episode: Optional[NextEpisode] = None
    total_seasons: int = 1
    synopsis: str = "No synopsis available."
    official_site: Optional[str] = None
    episodes: tuple[Episode, ...] = field(default_factory=tuple)
