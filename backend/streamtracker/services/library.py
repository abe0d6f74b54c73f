"""Library service — loads an account's library and applies write-through mutations.

Every mutation writes exactly the path it touched to the account store (no
batching, no conflict resolution) and, when that succeeds, refreshes the
local snapshot that ``load`` falls back to if the store is unreachable.
"""

import logging
import time
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from streamtracker.clients.base import IUserStore, NotificationEvent, StoreError
from streamtracker.models.library import (
    DISPLAY_MODES, Preferences, UserLibrary, episodes_to_dict,
)
from streamtracker.services import notifier
from streamtracker.services.snapshot_cache import LocalSnapshotCache

logger = logging.getLogger(__name__)


class LibraryService:
    """Reads and mutates per-account libraries."""

    def __init__(self, store: IUserStore, cache: Optional[LocalSnapshotCache] = None):
        self.store = store
        self.cache = cache

    async def load(
        self,
        account_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UserLibrary:
        """Load the whole library document.

        - Missing document: create an empty library and write it.
        - Store unreachable: use the local snapshot, else an empty library
          (which is not written back).
        """
        try:
            data = await self.store.read(account_id, "")
        except StoreError as e:
            logger.warning("Account store unavailable for %s, using local snapshot: %s", account_id, e)
            return await self._load_snapshot(account_id)

        if data is None:
            library = UserLibrary(
                email=email,
                display_name=display_name or (email.split("@")[0] if email else None),
                created_at=int(time.time() * 1000),
            )
            await self._persist(account_id, library, "", library.to_dict())
            logger.info("Initialized library for %s", account_id)
            return library

        return UserLibrary.from_dict(data)

    # ── Show lists ───────────────────────────────────────────────

    async def toggle_tracking(self, account_id: str, library: UserLibrary, show_id: int) -> bool:
        """Track or untrack a show. Returns True if it is now tracked."""
        return await self._toggle_id(account_id, library, "tracked_show_ids", "trackedShows", show_id)

    async def toggle_favorite(self, account_id: str, library: UserLibrary, show_id: int) -> bool:
        return await self._toggle_id(account_id, library, "favorite_show_ids", "favoriteShows", show_id)

    async def toggle_watchlist(self, account_id: str, library: UserLibrary, show_id: int) -> bool:
        return await self._toggle_id(account_id, library, "watchlist_show_ids", "watchlistShows", show_id)

    async def toggle_completed(self, account_id: str, library: UserLibrary, show_id: int) -> bool:
        return await self._toggle_id(account_id, library, "completed_show_ids", "completedShows", show_id)

    # ── Episodes ─────────────────────────────────────────────────

    async def toggle_episode(
        self, account_id: str, library: UserLibrary, show_id: int, season: int, number: int,
    ) -> bool:
        """Flip the watched flag of one episode. Returns the new flag."""
        key = (show_id, season, number)
        library.watched_episodes[key] = not library.watched_episodes.get(key, False)
        await self._persist(
            account_id, library, "watchedEpisodes", episodes_to_dict(library.watched_episodes),
        )
        return library.watched_episodes[key]

    # ── Preferences ──────────────────────────────────────────────

    async def update_preferences(
        self, account_id: str, library: UserLibrary, preferences: Preferences,
    ) -> Preferences:
        library.preferences = preferences
        await self._persist(account_id, library, "preferences", preferences.to_dict())
        return preferences

    async def toggle_subscription(self, account_id: str, library: UserLibrary, service: str) -> Preferences:
        return await self.update_preferences(
            account_id, library, library.preferences.with_subscription_toggled(service),
        )

    async def set_display_mode(self, account_id: str, library: UserLibrary, mode: str) -> Preferences:
        if mode not in DISPLAY_MODES:
            raise ValueError(f"Unknown display mode: {mode}")
        return await self.update_preferences(
            account_id, library, library.preferences.with_changes(display_mode=mode),
        )

    async def set_notification_setting(
        self, account_id: str, library: UserLibrary, name: str, value: bool,
    ) -> Preferences:
        return await self.update_preferences(
            account_id, library, library.preferences.with_notification_setting(name, value),
        )

    # ── Notifications ────────────────────────────────────────────

    async def add_notifications(
        self,
        account_id: str,
        library: UserLibrary,
        events: Iterable[NotificationEvent],
        now: Optional[datetime] = None,
    ) -> None:
        log = library.notifications
        for event in events:
            log = notifier.add_notification(log, event, now)
        library.notifications = log
        await self._persist_notifications(account_id, library)

    async def mark_notification_read(self, account_id: str, library: UserLibrary, notification_id: str) -> None:
        library.notifications = notifier.mark_read(library.notifications, notification_id)
        await self._persist_notifications(account_id, library)

    async def mark_all_notifications_read(self, account_id: str, library: UserLibrary) -> None:
        library.notifications = notifier.mark_all_read(library.notifications)
        await self._persist_notifications(account_id, library)

    # ── Internal methods ─────────────────────────────────────────

    async def _toggle_id(
        self, account_id: str, library: UserLibrary, attr: str, path: str, show_id: int,
    ) -> bool:
        ids: list[int] = getattr(library, attr)
        if show_id in ids:
            ids = [i for i in ids if i != show_id]
        else:
            ids = [*ids, show_id]
        setattr(library, attr, ids)
        await self._persist(account_id, library, path, ids)
        return show_id in ids

    async def _persist_notifications(self, account_id: str, library: UserLibrary) -> None:
        await self._persist(
            account_id, library, "notifications", [n.to_dict() for n in library.notifications],
        )

    async def _persist(self, account_id: str, library: UserLibrary, path: str, value: Any) -> bool:
        """Write one path through to the store, then refresh the local snapshot."""
        ok = await self.store.write(account_id, path, value)
        if not ok:
            logger.warning("Write-through of %r failed for %s", path or "/", account_id)
            return False
        if self.cache is not None:
            try:
                await self.cache.save(account_id, library.to_dict())
            except SQLAlchemyError as e:
                logger.warning("Local snapshot update failed for %s: %s", account_id, e)
        return True

    async def _load_snapshot(self, account_id: str) -> UserLibrary:
        if self.cache is None:
            return UserLibrary()
        try:
            payload = await self.cache.load(account_id)
        except SQLAlchemyError as e:
            logger.warning("Local snapshot unreadable for %s: %s", account_id, e)
            return UserLibrary()
        return UserLibrary.from_dict(payload) if payload else UserLibrary()
