"""
Escrow repository.

Data access layer for HTLC escrows.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.escrow import Escrow
from app.repositories.base import BaseRepository


class EscrowRepository(BaseRepository[Escrow]):
    """Repository for HTLC escrows."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Escrow, session)

    async def get_by_lock_id(self, lock_id: str) -> Escrow | None:
        """Get escrow by lock id."""
        return await self.get_by(lock_id=lock_id.lower())

    async def upsert_lock(
        self, lock_id: str, **data: Any
    ) -> tuple[Escrow, bool]:
        """
        Create an escrow for a Locked event, or return the existing one.

        An existing escrow is left untouched so a replayed Locked event
        cannot move a CLAIMED/REFUNDED escrow back to LOCKED.

        Returns:
            Tuple of (escrow, created)
        """
        existing = await self.get_by_lock_id(lock_id)
        if existing:
            return existing, False
        escrow = await self.create(lock_id=lock_id.lower(), **data)
        return escrow, True

    async def list_by_order(self, order_pk: int) -> list[Escrow]:
        """All escrows of an order."""
        query = (
            select(Escrow)
            .where(Escrow.order_pk == order_pk)
            .order_by(Escrow.block_number.asc(), Escrow.log_index.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
