"""Abstract interfaces for the external collaborators.

The catalog source, the account store and notification delivery are all
swappable: TVMaze and Firebase are the bundled implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional


class StoreError(Exception):
    """The account store could not be read."""


class NotificationPermission:
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


@dataclass
class NotificationEvent:
    """An alert the trigger logic decided should fire."""
    type: str              # "newEpisode" | "dayBefore" | "weekBefore"
    title: str
    message: str
    show_id: Optional[int]
    episode_code: str      # "S{season}E{number}"


# ── Abstract Interfaces ──────────────────────────────────────────

class ICatalogSource(ABC):
    """Interface for show catalog backends. Methods return raw upstream records."""

    @abstractmethod
    async def get_show(self, show_id: int) -> dict:
        """A single show with embedded episodes and next episode."""
        ...

    @abstractmethod
    async def get_shows(self, show_ids: list[int]) -> list[dict]:
        """Many shows in parallel. Failed fetches are dropped, not raised."""
        ...

    @abstractmethod
    async def single_search(self, name: str) -> Optional[dict]:
        """Best match for a title, with embeds. None if nothing matches."""
        ...

    @abstractmethod
    async def search(self, query: str) -> list[dict]:
        """Free text search; returns bare show records."""
        ...

    @abstractmethod
    async def get_schedule(self, day: date, country: str) -> list[dict]:
        """Episodes airing on ``day`` in ``country``."""
        ...

    @abstractmethod
    async def get_shows_page(self, page: int = 0) -> list[dict]:
        """One page of the full show index."""
        ...

    @abstractmethod
    async def get_updates(self) -> dict[str, int]:
        """show id → last-updated epoch seconds."""
        ...

    @abstractmethod
    async def test_connection(self) -> bool:
        ...


class IUserStore(ABC):
    """Interface for per-account persistence (key paths under ``users/{uid}``)."""

    @abstractmethod
    async def read(self, account_id: str, path: str = "") -> Any:
        """Value at ``path`` or None when absent. Raises StoreError on failure."""
        ...

    @abstractmethod
    async def write(self, account_id: str, path: str, value: Any) -> bool:
        """Replace the value at ``path``. Returns False on failure."""
        ...


class INotificationDelivery(ABC):
    """Interface for getting an alert in front of the user (browser, push, log)."""

    @abstractmethod
    async def request_permission(self) -> str:
        """One of NotificationPermission.GRANTED / DENIED / DEFAULT."""
        ...

    @abstractmethod
    async def deliver(self, account_id: str, event: NotificationEvent) -> bool:
        ...
