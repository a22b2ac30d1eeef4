"""
User repository.

Data access layer for User model.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository
from app.utils.security import mask_address


class UserRepository(BaseRepository[User]):
    """User repository with trading counters."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_address(self, address: str) -> User | None:
        """
        Get user by address (case-insensitive).

        Args:
            address: Wallet address (any case)

        Returns:
            User or None
        """
        if not address:
            return None
        return await self.get_by(for_update=True, address=address.lower())

    async def get_or_create(self, address: str) -> User:
        """Get user by address, creating an empty one if missing."""
        user = await self.get_by_address(address)
        if user:
            return user
        return await self.create(
            address=address.lower(),
            orders_created=0,
            orders_completed=0,
            total_volume="0",
        )

    async def increment_created(self, address: str) -> User:
        """Count a newly created order."""
        user = await self.get_or_create(address)
        return await self.update(
            user, orders_created=(user.orders_created or 0) + 1
        )

    async def record_completion(self, address: str, volume: int | str) -> User:
        """
        Count a completed order and add its volume.

        Args:
            address: Maker address
            volume: Raw sell amount of the completed order

        Returns:
            Updated user
        """
        user = await self.get_or_create(address)
        total = int(user.total_volume or 0) + int(volume)
        logger.debug(
            f"[Users] Completion for {mask_address(address)}: "
            f"completed={(user.orders_completed or 0) + 1}"
        )
        return await self.update(
            user,
            orders_completed=(user.orders_completed or 0) + 1,
            total_volume=str(total),
        )
