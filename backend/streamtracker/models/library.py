"""Per-account library: tracked shows, watched episodes, preferences, notifications.

The persisted layout (camelCase keys, ``"{show}-{season}-{number}"`` episode
keys) is what lives under ``users/{uid}`` in the account store. ``to_dict`` and
``from_dict`` translate between that layout and these objects.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

from streamtracker.models.show import KNOWN_SERVICES


NOTIFICATION_LOG_LIMIT = 50


class DisplayMode:
    MY_SERVICES = "myServices"
    TODAY = "today"
    POPULAR = "popular"
    ALL = "all"
    TOP_RATED = "topRated"
    RECENTLY_UPDATED = "recentlyUpdated"
    BROWSE_ALL = "browseAll"


DISPLAY_MODES = (
    DisplayMode.MY_SERVICES, DisplayMode.TODAY, DisplayMode.POPULAR, DisplayMode.ALL,
    DisplayMode.TOP_RATED, DisplayMode.RECENTLY_UPDATED, DisplayMode.BROWSE_ALL,
)

# Persisted key ↔ attribute name
_NOTIFICATION_KEYS = {
    "enabled": "enabled",
    "newEpisodes": "new_episodes",
    "dayBefore": "day_before",
    "weekBefore": "week_before",
    "seriesStatus": "series_status",
    "serviceRecommendations": "service_recommendations",
}


@dataclass(frozen=True)
class NotificationSettings:
    enabled: bool = True
    new_episodes: bool = True
    day_before: bool = True
    week_before: bool = False
    series_status: bool = True
    service_recommendations: bool = True

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr in _NOTIFICATION_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Any) -> "NotificationSettings":
        if not isinstance(data, dict):
            return cls()
        values = {
            attr: bool(data[key])
            for key, attr in _NOTIFICATION_KEYS.items()
            if key in data
        }
        return cls(**values)


@dataclass(frozen=True)
class Preferences:
    """User preferences. Immutable — use ``with_changes`` to derive a new value."""
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    auto_mark_watched: bool = False
    default_service: str = "all"
    subscriptions: tuple[str, ...] = KNOWN_SERVICES
    display_mode: str = DisplayMode.POPULAR

    def with_changes(self, **changes) -> "Preferences":
        if "subscriptions" in changes:
            changes["subscriptions"] = tuple(changes["subscriptions"])
        return replace(self, **changes)

    def with_subscription_toggled(self, service: str) -> "Preferences":
        if service in self.subscriptions:
            subs = tuple(s for s in self.subscriptions if s != service)
        else:
            subs = self.subscriptions + (service,)
        return replace(self, subscriptions=subs)

    def with_notification_setting(self, name: str, value: bool) -> "Preferences":
        if name not in _NOTIFICATION_KEYS.values():
            raise ValueError(f"Unknown notification setting: {name}")
        return replace(self, notifications=replace(self.notifications, **{name: value}))

    def to_dict(self) -> dict:
        return {
            "notifications": self.notifications.to_dict(),
            "autoMarkWatched": self.auto_mark_watched,
            "defaultService": self.default_service,
            "subscriptions": list(self.subscriptions),
            "displayMode": self.display_mode,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Preferences":
        if not isinstance(data, dict):
            return cls()
        defaults = cls()
        subs = data.get("subscriptions")
        display_mode = data.get("displayMode")
        return cls(
            notifications=NotificationSettings.from_dict(data.get("notifications")),
            auto_mark_watched=bool(data.get("autoMarkWatched", defaults.auto_mark_watched)),
            default_service=data.get("defaultService") or defaults.default_service,
            subscriptions=tuple(_as_list(subs)) if subs is not None else defaults.subscriptions,
            display_mode=display_mode if display_mode in DISPLAY_MODES else defaults.display_mode,
        )


@dataclass
class NotificationEntry:
    """One entry in the in-app notification log."""
    id: str
    timestamp: datetime
    type: str
    title: str
    message: str
    read: bool = False
    related_show_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "relatedShowId": self.related_show_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationEntry":
        return cls(
            id=str(data.get("id", "")),
            timestamp=_parse_timestamp(data.get("timestamp")),
            type=data.get("type", ""),
            title=data.get("title", ""),
            message=data.get("message", ""),
            read=bool(data.get("read", False)),
            related_show_id=data.get("relatedShowId"),
        )


@dataclass
class UserLibrary:
    """Everything the account store holds for one user."""
    tracked_show_ids: list[int] = field(default_factory=list)
    favorite_show_ids: list[int] = field(default_factory=list)
    watchlist_show_ids: list[int] = field(default_factory=list)
    completed_show_ids: list[int] = field(default_factory=list)
    watched_episodes: dict[tuple[int, int, int], bool] = field(default_factory=dict)
    preferences: Preferences = field(default_factory=Preferences)
    notifications: list[NotificationEntry] = field(default_factory=list)
    email: Optional[str] = None
    display_name: Optional[str] = None
    created_at: Optional[int] = None   # epoch millis

    def is_watched(self, show_id: int, season: int, number: int) -> bool:
        return bool(self.watched_episodes.get((show_id, season, number)))

    def to_dict(self) -> dict:
        data = {
            "trackedShows": list(self.tracked_show_ids),
            "favoriteShows": list(self.favorite_show_ids),
            "watchlistShows": list(self.watchlist_show_ids),
            "completedShows": list(self.completed_show_ids),
            "watchedEpisodes": episodes_to_dict(self.watched_episodes),
            "preferences": self.preferences.to_dict(),
            "notifications": [n.to_dict() for n in self.notifications],
        }
        if self.email is not None:
            data["email"] = self.email
        if self.display_name is not None:
            data["displayName"] = self.display_name
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "UserLibrary":
        if not isinstance(data, dict):
            return cls()
        return cls(
            tracked_show_ids=_as_int_list(data.get("trackedShows")),
            favorite_show_ids=_as_int_list(data.get("favoriteShows")),
            watchlist_show_ids=_as_int_list(data.get("watchlistShows")),
            completed_show_ids=_as_int_list(data.get("completedShows")),
            watched_episodes=episodes_from_dict(data.get("watchedEpisodes")),
            preferences=Preferences.from_dict(data.get("preferences")),
            notifications=[
                NotificationEntry.from_dict(n)
                for n in _as_list(data.get("notifications"))
                if isinstance(n, dict)
            ][:NOTIFICATION_LOG_LIMIT],
            email=data.get("email"),
            display_name=data.get("displayName"),
            created_at=data.get("createdAt"),
        )


# ── Wire helpers ─────────────────────────────────────────────────

def episode_key(show_id: int, season: int, number: int) -> str:
    return f"{show_id}-{season}-{number}"


def episodes_to_dict(watched: dict[tuple[int, int, int], bool]) -> dict[str, bool]:
    return {episode_key(*key): value for key, value in watched.items()}


def episodes_from_dict(data: Any) -> dict[tuple[int, int, int], bool]:
    if not isinstance(data, dict):
        return {}
    watched = {}
    for key, value in data.items():
        parts = str(key).split("-")
        if len(parts) != 3:
            continue
        try:
            watched[(int(parts[0]), int(parts[1]), int(parts[2]))] = bool(value)
        except ValueError:
            continue
    return watched


def _as_list(value: Any) -> list:
    # Firebase returns sparse arrays as objects keyed by index
    if isinstance(value, list):
        return [v for v in value if v is not None]
    if isinstance(value, dict):
        return [v for _, v in sorted(value.items(), key=lambda kv: int(kv[0]) if str(kv[0]).isdigit() else 0)]
    return []


def _as_int_list(value: Any) -> list[int]:
    ids = []
    for v in _as_list(value):
        try:
            ids.append(int(v))
        except (TypeError, ValueError):
            continue
    return list(dict.fromkeys(ids))


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    return datetime.now(timezone.utc)
