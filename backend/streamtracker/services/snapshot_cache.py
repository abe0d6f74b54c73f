"""Local snapshot cache — fallback copy of each account's library document.

Refreshed after every successful write to the account store; read only when
the account store itself can't be reached.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from streamtracker.models.tables import LibrarySnapshot

logger = logging.getLogger(__name__)


class LocalSnapshotCache:
    """Keeps the last known-good library document per account in SQLite."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def save(self, account_id: str, payload: dict) -> None:
        stmt = sqlite_insert(LibrarySnapshot).values(
            account_id=account_id,
            payload=payload,
            updated_at=datetime.now(timezone.utc),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["account_id"],
            set_={"payload": stmt.excluded.payload, "updated_at": stmt.excluded.updated_at},
        )
        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()
        logger.debug("Cached library snapshot for %s", account_id)

    async def load(self, account_id: str) -> Optional[dict]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(LibrarySnapshot.payload).where(LibrarySnapshot.account_id == account_id)
            )
            return result.scalar_one_or_none()
