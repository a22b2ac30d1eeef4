"""
Base repository.

Lookups and flush-only writes shared by all indexer repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository for indexer models.

    Repositories only flush; the dispatcher and the sync loop decide
    when a unit of work is committed.

    Example:
        class EscrowRepository(BaseRepository[Escrow]):
            def __init__(self, session: AsyncSession):
                super().__init__(Escrow, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Get row by primary key."""
        return await self.session.get(self.model, id)

    async def get_by(
        self, for_update: bool = False, **filters: Any
    ) -> ModelType | None:
        """
        Get a single row by column filters.

        Args:
            for_update: Lock the row (SELECT ... FOR UPDATE)
            **filters: Column filters, all must match

        Returns:
            Matching row or None
        """
        stmt = select(self.model).filter_by(**filters)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """Add a new row and flush so its primary key is assigned."""
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def update(self, entity: ModelType, **data: Any) -> ModelType:
        """
        Apply column changes to a loaded row and flush.

        Args:
            entity: Row loaded in this session
            **data: Column values

        Returns:
            The same row
        """
        for key, value in data.items():
            setattr(entity, key, value)

        await self.session.flush()
        return entity
