"""Generic record updates for the update_database workflow action"""

from typing import Any

from sqlalchemy import and_, column, table, update
from sqlalchemy.ext.asyncio import AsyncSession

from wa_automation.shared.utils import validate_sql_identifier


class RecordRepository:
    """
    Applies field updates to rows of a named table matching an equality filter.

    Table and column names come from workflow configuration, so every
    identifier is validated before it reaches SQL. Values are always bound.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_records(
        self, table_name: str, updates: dict[str, Any], where: dict[str, Any]
    ) -> int:
        """Returns the number of rows affected"""
        if not updates:
            raise ValueError("updates must not be empty")
        if not where:
            raise ValueError("where must not be empty")

        validate_sql_identifier(table_name, "table name")
        for name in (*updates, *where):
            validate_sql_identifier(name, "column name")

        target = table(table_name, *(column(name) for name in {*updates, *where}))
        stmt = (
            update(target)
            .where(and_(*(target.c[name] == value for name, value in where.items())))
            .values({target.c[name]: value for name, value in updates.items()})
        )
        result = await self.db.execute(stmt)
        return result.rowcount
