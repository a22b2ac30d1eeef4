"""
Chain Cursor repository.

Data access layer for per-chain sync cursors.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.chain_cursor import ChainCursor
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class ChainCursorRepository(BaseRepository[ChainCursor]):
    """Repository for chain sync cursors."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ChainCursor, session)

    async def get_by_chain(self, chain_id: int) -> ChainCursor | None:
        """Get cursor of a chain."""
        return await self.get_by(chain_id=chain_id)

    async def save_checkpoint(
        self, chain_id: int, block_number: int, block_hash: str
    ) -> ChainCursor:
        """
        Advance (or create) the cursor after a fully applied block range.

        Args:
            chain_id: Chain ID
            block_number: Last fully processed block
            block_hash: Hash of that block

        Returns:
            Updated cursor
        """
        cursor = await self.get_by_chain(chain_id)
        if cursor is None:
            return await self.create(
                chain_id=chain_id,
                first_synced_block=block_number,
                last_block_number=block_number,
                last_block_hash=block_hash.lower(),
                reorg_count=0,
                error_count=0,
            )

        return await self.update(
            cursor,
            last_block_number=block_number,
            last_block_hash=block_hash.lower(),
            last_error=None,
        )

    async def rewind(
        self, chain_id: int, block_number: int, block_hash: str
    ) -> ChainCursor | None:
        """
        Move the cursor back to a safe block after a reorg.

        Args:
            chain_id: Chain ID
            block_number: Safe block to resume after
            block_hash: Hash of the safe block

        Returns:
            Updated cursor or None if the chain has no cursor
        """
        cursor = await self.get_by_chain(chain_id)
        if cursor is None:
            return None

        return await self.update(
            cursor,
            last_block_number=block_number,
            last_block_hash=block_hash.lower(),
            reorg_count=(cursor.reorg_count or 0) + 1,
            last_reorg_at=utc_now(),
        )

    async def record_error(
        self, chain_id: int, error: str
    ) -> ChainCursor | None:
        """Store the last sync error of a chain (cursor must exist)."""
        cursor = await self.get_by_chain(chain_id)
        if cursor is None:
            return None

        return await self.update(
            cursor,
            last_error=error[:1000],
            error_count=(cursor.error_count or 0) + 1,
        )
