"""StreamTracker — TV show tracking backend."""

__version__ = "0.1.0"
