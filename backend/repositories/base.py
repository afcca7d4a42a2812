from __future__ import annotations

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD helpers.

    No commits are performed here - commit responsibility is left to the
    caller (cache store or runner).
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with an async session."""
        self.session = session

    async def add(self, entity: T) -> T:
        """Add an entity to the session (not committed)."""
        self.session.add(entity)
        return entity

    async def get_by_id(
        self, model: Type[T], id_value: Any
    ) -> Optional[T]:
        """Get an entity by its primary key (scalar or tuple for composite keys)."""
        result = await self.session.get(model, id_value, populate_existing=True)
        return result

    async def upsert_values(
        self,
        model: Type[T],
        values: dict,
        conflict_columns: List[str],
    ) -> None:
        """INSERT ... ON CONFLICT DO UPDATE for SQLite and PostgreSQL (last writer wins)."""
        dialect_name = self.session.bind.dialect.name if self.session.bind is not None else "sqlite"
        insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
        stmt = insert(model).values(**values)
        update_cols = {
            key: getattr(stmt.excluded, key)
            for key in values
            if key not in conflict_columns
        }
        stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=update_cols)
        await self.session.execute(stmt)
