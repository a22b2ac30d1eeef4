"""
Chain Indexer Reorg Mixin.

Detects reorganizations by comparing the stored cursor hash with the
canonical hash at the same height, and rolls the cursor back.
"""

from typing import Any

from loguru import logger

from app.models.chain_cursor import ChainCursor
from app.services.handlers.context import Repositories
from app.utils.exceptions import TRANSIENT_ERRORS


class ReorgMixin:
    """Mixin providing reorg detection and rollback."""

    def safe_block_for(self, last_block_number: int) -> int:
        """
        Block to roll back to from `last_block_number`.

        Never goes below the block before the configured start block.
        """
        floor = max(self.chain.start_block - 1, 0)
        target = max(last_block_number - self.options.reorg_tolerance_blocks, floor)
        return min(target, last_block_number)

    async def check_reorg(
        self, repos: Repositories, cursor: ChainCursor | None
    ) -> dict[str, Any]:
        """
        Compare the cursor with the chain and roll back on mismatch.

        A cursor above the current head means the chain it was taken
        from no longer exists and is rolled back as well, to the lower
        of the safe block and the head. The cursor block and the
        rollback target are fetched in one batch so a rollback needs no
        further RPC round trip.

        Args:
            repos: Repositories of this cycle
            cursor: Stored cursor (None on first run)

        Returns:
            Dict with:
            - reorg: Whether a reorg was detected and rolled back
            - error: RPC error that prevented the check (cycle must stop)
            - safe_block / removed_events: rollback details
        """
        if cursor is None:
            return {"reorg": False}

        last = cursor.last_block_number

        try:
            head = await self.client.get_block_number()
            safe_block = min(self.safe_block_for(last), head)
            numbers = [safe_block] if last > head else sorted({last, safe_block})
            refs = await self.client.get_block_refs(numbers)
        except TRANSIENT_ERRORS as e:
            logger.error(
                f"[Reorg] {self.chain.name}: cannot verify block {last}: {e}"
            )
            return {"reorg": False, "error": f"reorg check failed: {e}"}

        by_number = {ref.number: ref for ref in refs}
        if by_number.get(safe_block) is None:
            return {"reorg": False, "error": f"block {safe_block} missing"}

        if last > head:
            logger.warning(
                f"[Reorg] Reorg detected on {self.chain.name} ({self.chain.chain_id}): "
                f"cursor block {last} is above head {head}"
            )
        else:
            current = by_number.get(last)
            if current is None:
                return {"reorg": False, "error": f"block {last} missing"}

            if current.hash == cursor.last_block_hash:
                return {"reorg": False}

            logger.warning(
                f"[Reorg] Reorg detected on {self.chain.name} ({self.chain.chain_id}) "
                f"at block {last}: stored {cursor.last_block_hash[:10]}..., "
                f"chain {current.hash[:10]}..."
            )

        removed = await repos.events.mark_removed_after(
            self.chain.chain_id, safe_block
        )
        await repos.cursors.rewind(
            self.chain.chain_id, safe_block, by_number[safe_block].hash
        )
        await repos.commit()

        logger.warning(
            f"[Reorg] {self.chain.name}: rolled back to block {safe_block}, "
            f"{removed} events marked removed"
        )
        return {
            "reorg": True,
            "reorg_block": last,
            "safe_block": safe_block,
            "removed_events": removed,
        }
