"""Re-export the domain models and cache tables for import convenience."""

from streamtracker.models.show import (  # noqa: F401
    Show, Episode, NextEpisode, Schedule, ShowStatus, Service, KNOWN_SERVICES,
)
from streamtracker.models.library import (  # noqa: F401
    UserLibrary, Preferences, NotificationSettings, NotificationEntry, DisplayMode,
)
from streamtracker.models.tables import LibrarySnapshot  # noqa: F401
