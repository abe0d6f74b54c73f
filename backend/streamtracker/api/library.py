"""Account library endpoints — show lists, watched episodes, preferences."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from streamtracker.api.deps import get_catalog, get_library_service
from streamtracker.api.shows import fetch_show
from streamtracker.models.library import DISPLAY_MODES
from streamtracker.services.analytics import show_progress
from streamtracker.services.catalog import CatalogService
from streamtracker.services.library import LibraryService

router = APIRouter()


LIST_TOGGLES = {
    "tracked": LibraryService.toggle_tracking,
    "favorites": LibraryService.toggle_favorite,
    "watchlist": LibraryService.toggle_watchlist,
    "completed": LibraryService.toggle_completed,
}


class NotificationSettingsUpdate(BaseModel):
    enabled: Optional[bool] = None
    new_episodes: Optional[bool] = None
    day_before: Optional[bool] = None
    week_before: Optional[bool] = None
    series_status: Optional[bool] = None
    service_recommendations: Optional[bool] = None


class PreferencesUpdate(BaseModel):
    """Partial preferences update; omitted fields keep their value."""
    notifications: Optional[NotificationSettingsUpdate] = None
    auto_mark_watched: Optional[bool] = None
    default_service: Optional[str] = None
    subscriptions: Optional[list[str]] = None
    display_mode: Optional[str] = None


@router.get("/users/{account_id}/library")
async def get_library(
    account_id: str,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
    service: LibraryService = Depends(get_library_service),
):
    """The whole library document, created on first access."""
    library = await service.load(account_id, email=email, display_name=display_name)
    return library.to_dict()


def _add_list_route(list_name: str, toggle):
    async def toggle_list(
        account_id: str,
        show_id: int,
        service: LibraryService = Depends(get_library_service),
    ):
        """Add a show to the list, or remove it if already present."""
        library = await service.load(account_id)
        member = await toggle(service, account_id, library, show_id)
        return {"show_id": show_id, "list": list_name, "member": member}

    router.add_api_route(
        f"/users/{{account_id}}/{list_name}/{{show_id}}",
        toggle_list,
        methods=["POST"],
        name=f"toggle_{list_name}",
    )


for _name, _toggle in LIST_TOGGLES.items():
    _add_list_route(_name, _toggle)


@router.post("/users/{account_id}/episodes/{show_id}/{season}/{number}")
async def toggle_episode(
    account_id: str,
    show_id: int,
    season: int,
    number: int,
    service: LibraryService = Depends(get_library_service),
):
    library = await service.load(account_id)
    watched = await service.toggle_episode(account_id, library, show_id, season, number)
    return {"show_id": show_id, "season": season, "number": number, "watched": watched}


@router.get("/users/{account_id}/progress/{show_id}")
async def get_progress(
    account_id: str,
    show_id: int,
    service: LibraryService = Depends(get_library_service),
    catalog: CatalogService = Depends(get_catalog),
):
    """Percentage of a show's episodes the account has watched."""
    library = await service.load(account_id)
    show = await fetch_show(catalog, show_id)
    return {"show_id": show_id, "progress": show_progress(library, show)}


@router.put("/users/{account_id}/preferences")
async def update_preferences(
    account_id: str,
    update: PreferencesUpdate,
    service: LibraryService = Depends(get_library_service),
):
    """Apply a partial update and write the preferences once."""
    if update.display_mode is not None and update.display_mode not in DISPLAY_MODES:
        raise HTTPException(400, f"Unknown display mode: {update.display_mode}")

    library = await service.load(account_id)
    preferences = library.preferences.with_changes(**update.model_dump(
        exclude_none=True,
        include={"auto_mark_watched", "default_service", "subscriptions", "display_mode"},
    ))
    if update.notifications is not None:
        for name, value in update.notifications.model_dump(exclude_none=True).items():
            preferences = preferences.with_notification_setting(name, value)

    preferences = await service.update_preferences(account_id, library, preferences)
    return preferences.to_dict()


@router.post("/users/{account_id}/subscriptions/{service_name}")
async def toggle_subscription(
    account_id: str,
    service_name: str,
    service: LibraryService = Depends(get_library_service),
):
    """Subscribe to a streaming service, or unsubscribe if already subscribed."""
    library = await service.load(account_id)
    preferences = await service.toggle_subscription(account_id, library, service_name)
    return {
        "service": service_name,
        "subscribed": service_name in preferences.subscriptions,
        "subscriptions": list(preferences.subscriptions),
    }
