"""
Order repository.

Data access layer for Order model.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import Order
from app.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Order repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize order repository."""
        super().__init__(Order, session)

    async def get_by_order_id(self, order_id: int) -> Order | None:
        """
        Get order by on-chain (offset-adjusted) order id.

        Locks the row so concurrent chains cannot interleave
        transitions of the same order.
        """
        return await self.get_by(for_update=True, order_id=order_id)

    async def get_by_pk(self, pk: int) -> Order | None:
        """Get order by primary key, locking the row."""
        return await self.get_by(for_update=True, id=pk)

    async def create_if_absent(
        self, order_id: int, **data: Any
    ) -> tuple[Order, bool]:
        """
        Create an order unless one with that id exists.

        Args:
            order_id: Order id
            **data: Order fields

        Returns:
            Tuple of (order, created)
        """
        existing = await self.get_by_order_id(order_id)
        if existing:
            return existing, False
        order = await self.create(order_id=order_id, **data)
        return order, True
