"""Notification log endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from streamtracker.api.deps import get_library_service, get_monitor
from streamtracker.services.library import LibraryService
from streamtracker.services.notifier import NotificationMonitor, unread_count

router = APIRouter()


@router.get("/users/{account_id}/notifications")
async def list_notifications(
    account_id: str,
    service: LibraryService = Depends(get_library_service),
):
    """Newest-first notification log with the unread badge count."""
    library = await service.load(account_id)
    return {
        "notifications": [n.to_dict() for n in library.notifications],
        "unread": unread_count(library.notifications),
    }


@router.post("/users/{account_id}/notifications/check")
async def check_notifications(
    account_id: str,
    monitor: NotificationMonitor = Depends(get_monitor),
):
    """Run the upcoming-episode check for one account now."""
    events = await monitor.check_account(account_id)
    return {"fired": [asdict(e) for e in events]}


@router.post("/users/{account_id}/notifications/read-all")
async def mark_all_read(
    account_id: str,
    service: LibraryService = Depends(get_library_service),
):
    library = await service.load(account_id)
    await service.mark_all_notifications_read(account_id, library)
    return {"unread": 0}


@router.post("/users/{account_id}/notifications/{notification_id}/read")
async def mark_read(
    account_id: str,
    notification_id: str,
    service: LibraryService = Depends(get_library_service),
):
    library = await service.load(account_id)
    await service.mark_notification_read(account_id, library, notification_id)
    return {"unread": unread_count(library.notifications)}
