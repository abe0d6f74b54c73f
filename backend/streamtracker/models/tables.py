"""SQLAlchemy ORM models — local cache tables."""

from datetime import datetime
from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from streamtracker.database import Base


# ── Library snapshots ────────────────────────────────────────────

class LibrarySnapshot(Base):
    """Last library document successfully written to the account store."""
    __tablename__ = "library_snapshots"

    account_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
