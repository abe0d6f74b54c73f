"""Service stack wiring for the API routers (overridable in tests)."""

from fastapi import Depends, HTTPException

from streamtracker.config import settings
from streamtracker.clients.firebase import FirebaseUserStore
from streamtracker.clients.tvmaze import TvMazeClient
from streamtracker.database import async_session
from streamtracker.services.catalog import CatalogService
from streamtracker.services.library import LibraryService
from streamtracker.services.notifier import LogDelivery, NotificationMonitor
from streamtracker.services.snapshot_cache import LocalSnapshotCache


def get_catalog() -> CatalogService:
    client = TvMazeClient(settings.tvmaze_url, timeout=settings.tvmaze_timeout)
    return CatalogService(
        client,
        country=settings.tvmaze_country,
        placeholder_poster=settings.placeholder_poster_url,
    )


def get_library_service() -> LibraryService:
    if not settings.has_firebase:
        raise HTTPException(503, "Account store not configured (FIREBASE_DATABASE_URL)")
    store = FirebaseUserStore(settings.firebase_database_url, settings.firebase_auth_token)
    return LibraryService(store, cache=LocalSnapshotCache(async_session))


def get_monitor(
    library: LibraryService = Depends(get_library_service),
    catalog: CatalogService = Depends(get_catalog),
) -> NotificationMonitor:
    return NotificationMonitor(
        library, catalog, LogDelivery(),
        interval_minutes=settings.notification_check_interval_minutes,
    )
