"""Persistence collaborator for the update_database workflow action"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wa_automation.infrastructure.persistence.repositories.record_repo import RecordRepository


class DatabaseRecordUpdater:
    """Runs each update in its own transaction so a failed action leaves no partial write"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def update_records(
        self, table: str, updates: dict[str, Any], where: dict[str, Any]
    ) -> int:
        async with self.session_factory.begin() as session:
            return await RecordRepository(session).update_records(table, updates, where)
