"""
Chain Indexer Sync Mixin.

Catch-up sync from the cursor to the confirmed head in bounded
sub-ranges, checkpointing the cursor after each one.
"""

from typing import Any

from loguru import logger

from app.models.chain_cursor import ChainCursor
from app.services.blockchain.log_fetcher import fetch_logs
from app.services.handlers.context import Repositories
from app.utils.exceptions import TRANSIENT_ERRORS


class SyncMixin:
    """Mixin providing catch-up sync."""

    def plan_ranges(self, from_block: int, to_block: int) -> list[tuple[int, int]]:
        """
        Split [from_block, to_block] into consecutive inclusive sub-ranges.

        Examples:
            from 101 to 250 with max 50 -> (101,150), (151,200), (201,250)
        """
        step = self.options.max_blocks_per_query
        ranges = []
        start = from_block
        while start <= to_block:
            end = min(start + step - 1, to_block)
            ranges.append((start, end))
            start = end + 1
        return ranges

    async def catch_up(
        self, repos: Repositories, cursor: ChainCursor | None
    ) -> dict[str, Any]:
        """
        Sync from cursor + 1 (or start block) up to head - confirmations.

        Args:
            repos: Repositories of this cycle
            cursor: Current cursor (None on first run)

        Returns:
            Dict with:
            - events: Number of events dispatched
            - from_block / to_block: Planned range (None if up to date)
            - ranges: Sub-ranges fully processed and checkpointed
            - error: Fetch error that stopped the catch-up, if any
        """
        result: dict[str, Any] = {
            "events": 0,
            "from_block": None,
            "to_block": None,
            "ranges": [],
            "error": None,
        }

        try:
            head = await self.client.get_block_number()
        except TRANSIENT_ERRORS as e:
            logger.error(f"[Sync] {self.chain.name}: cannot get head block: {e}")
            result["error"] = f"eth_blockNumber failed: {e}"
            return result

        safe_head = head - self.chain.confirmations
        if cursor is None:
            from_block = self.chain.start_block
        else:
            from_block = cursor.last_block_number + 1

        if from_block > safe_head:
            logger.debug(
                f"[Sync] {self.chain.name}: up to date "
                f"(next {from_block}, safe head {safe_head})"
            )
            return result

        result["from_block"] = from_block
        result["to_block"] = safe_head
        logger.info(
            f"[Sync] {self.chain.name}: syncing blocks {from_block}-{safe_head} "
            f"(head {head})"
        )

        for start, end in self.plan_ranges(from_block, safe_head):
            if self.stop_requested():
                logger.info(f"[Sync] {self.chain.name}: stop requested, pausing at {start - 1}")
                break

            fetched = await fetch_logs(self.client, self.decoder.addresses, start, end)
            if not fetched.ok:
                result["error"] = f"logs {start}-{end}: {fetched.error}"
                break

            decoded = self.decoder.decode_logs(fetched.logs)
            for item in decoded:
                await self.dispatcher.dispatch(repos, item)

            try:
                end_ref = await self.client.get_block(end)
            except TRANSIENT_ERRORS as e:
                logger.error(f"[Sync] {self.chain.name}: cannot checkpoint block {end}: {e}")
                result["error"] = f"checkpoint {end}: {e}"
                break

            await repos.cursors.save_checkpoint(self.chain.chain_id, end, end_ref.hash)
            await repos.commit()

            result["ranges"].append((start, end))
            result["events"] += len(decoded)
            logger.info(
                f"[Sync] {self.chain.name}: blocks {start}-{end} done, "
                f"{len(decoded)} events"
            )

        return result
