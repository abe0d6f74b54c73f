"""Episode reminders — trigger windows, the in-app log, and the hourly monitor.

``check_upcoming_episodes`` only decides *whether* an alert should fire. How it
reaches the user is up to an ``INotificationDelivery``. Re-running a check
inside the same window fires the same alert again; nothing here deduplicates.
"""

import asyncio
import logging
import math
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from streamtracker.clients.base import INotificationDelivery, NotificationEvent, NotificationPermission
from streamtracker.models.library import NOTIFICATION_LOG_LIMIT, NotificationEntry, NotificationSettings
from streamtracker.models.show import Show

if TYPE_CHECKING:
    from streamtracker.services.catalog import CatalogService
    from streamtracker.services.library import LibraryService

logger = logging.getLogger(__name__)


# (hours_after_exclusive, hours_until_inclusive); windows never overlap
NEW_EPISODE_WINDOW = (0, 2)
DAY_BEFORE_WINDOW = (23, 25)
WEEK_BEFORE_WINDOW = (167, 169)


def check_upcoming_episodes(
    tracked_shows: Iterable[Show],
    now: datetime,
    settings: NotificationSettings,
) -> list[NotificationEvent]:
    """Reminders due for the given tracked shows at ``now``."""
    if not settings.enabled:
        return []
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    events = []
    for show in tracked_shows:
        ep = show.next_episode
        if ep is None or ep.air_at is None:
            continue

        hours = (ep.air_at - now).total_seconds() / 3600

        if settings.new_episodes and _within(hours, NEW_EPISODE_WINDOW):
            rounded = _round_half_up(hours)
            events.append(NotificationEvent(
                type="newEpisode",
                title=f"{show.title} - New Episode!",
                message=f"{ep.code}: {ep.title} airs in {rounded} hour{'' if rounded == 1 else 's'}",
                show_id=show.id,
                episode_code=ep.code,
            ))

        if settings.day_before and _within(hours, DAY_BEFORE_WINDOW):
            events.append(NotificationEvent(
                type="dayBefore",
                title=f"Tomorrow: {show.title}",
                message=f"{ep.code}: {ep.title} airs tomorrow!",
                show_id=show.id,
                episode_code=ep.code,
            ))

        if settings.week_before and _within(hours, WEEK_BEFORE_WINDOW):
            events.append(NotificationEvent(
                type="weekBefore",
                title=f"Next Week: {show.title}",
                message=f"{ep.code}: {ep.title} airs in 7 days",
                show_id=show.id,
                episode_code=ep.code,
            ))

    return events


# ── Notification log ─────────────────────────────────────────────

def add_notification(
    log: list[NotificationEntry],
    event: NotificationEvent,
    now: Optional[datetime] = None,
) -> list[NotificationEntry]:
    """New log with the event prepended, capped at the newest 50."""
    entry = NotificationEntry(
        id=uuid.uuid4().hex,
        timestamp=now or datetime.now(timezone.utc),
        type=event.type,
        title=event.title,
        message=event.message,
        related_show_id=event.show_id,
    )
    return [entry, *log][:NOTIFICATION_LOG_LIMIT]


def mark_read(log: list[NotificationEntry], notification_id: str) -> list[NotificationEntry]:
    return [replace(entry, read=True) if entry.id == notification_id else entry for entry in log]


def mark_all_read(log: list[NotificationEntry]) -> list[NotificationEntry]:
    return [replace(entry, read=True) for entry in log]


def unread_count(log: list[NotificationEntry]) -> int:
    return sum(1 for entry in log if not entry.read)


# ── Delivery & monitor ───────────────────────────────────────────

class LogDelivery(INotificationDelivery):
    """Delivers alerts to the application log."""

    async def request_permission(self) -> str:
        return NotificationPermission.GRANTED

    async def deliver(self, account_id: str, event: NotificationEvent) -> bool:
        logger.info("[%s] %s — %s", account_id, event.title, event.message)
        return True


class NotificationMonitor:
    """Runs the upcoming-episode check for a set of accounts on an interval."""

    def __init__(
        self,
        library: "LibraryService",
        catalog: "CatalogService",
        delivery: INotificationDelivery,
        interval_minutes: int = 60,
    ):
        self.library = library
        self.catalog = catalog
        self.delivery = delivery
        self.interval_minutes = interval_minutes

    async def check_account(self, account_id: str, now: Optional[datetime] = None) -> list[NotificationEvent]:
        """Check one account, log the events to its library and deliver them."""
        now = now or datetime.now(timezone.utc)
        lib = await self.library.load(account_id)
        if not lib.tracked_show_ids:
            return []

        shows = await self.catalog.get_shows(lib.tracked_show_ids, now=now)
        events = check_upcoming_episodes(shows, now, lib.preferences.notifications)
        if not events:
            return events

        await self.library.add_notifications(account_id, lib, events, now=now)

        permission = await self.delivery.request_permission()
        if permission == NotificationPermission.GRANTED:
            for event in events:
                await self.delivery.deliver(account_id, event)
        else:
            logger.info("Delivery permission %s for %s; %d alert(s) logged only",
                        permission, account_id, len(events))
        return events

    async def run_once(self, account_ids: Iterable[str]) -> int:
        """One pass over all accounts. Returns the number of events fired."""
        fired = 0
        for account_id in account_ids:
            try:
                fired += len(await self.check_account(account_id))
            except Exception:
                logger.exception("Notification check failed for %s", account_id)
        return fired

    async def run_forever(self, account_ids: list[str]):
        """Check immediately, then every interval, until cancelled."""
        while True:
            fired = await self.run_once(account_ids)
            logger.info("Notification pass complete: %d alert(s)", fired)
            await asyncio.sleep(self.interval_minutes * 60)


def _within(hours: float, window: tuple[int, int]) -> bool:
    low, high = window
    return low < hours <= high


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
