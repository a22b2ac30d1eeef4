"""
Chain Indexer Replay Mixin.

Re-runs handlers for stored events that were never marked processed:
events recorded before a crash, and orphaned events waiting for their
order/escrow to be indexed.
"""

from typing import Any

from loguru import logger

from app.services.events.decoder import DecodedLog
from app.services.handlers.context import HandlerOutcome, Repositories
from app.utils.exceptions import EventDecodeError


class ReplayMixin:
    """Mixin providing replay of unprocessed events."""

    async def replay_unprocessed(self, repos: Repositories) -> dict[str, Any]:
        """
        Replay unprocessed, non-removed events in (block, log index) order.

        Returns:
            Dict with replayed / applied / orphaned / skipped counts
        """
        stats = {"replayed": 0, "applied": 0, "orphaned": 0, "skipped": 0}

        records = await repos.events.get_unprocessed(
            self.chain.chain_id,
            max_attempts=self.options.max_orphan_attempts,
            limit=self.options.replay_batch_limit,
        )
        if not records:
            return stats

        logger.info(
            f"[Replay] {self.chain.name}: replaying {len(records)} stored events"
        )

        for record in records:
            kind = self.decoder.kind_of(record.contract_address)
            try:
                if kind is None:
                    raise EventDecodeError(
                        f"contract {record.contract_address} no longer configured"
                    )
                decoded = DecodedLog.from_record(record, kind)
            except EventDecodeError as e:
                logger.warning(f"[Replay] {self.chain.name}: skipping event {record.id}: {e}")
                await repos.events.mark_processed(record, notes=f"skipped: {e}")
                await repos.commit()
                stats["skipped"] += 1
                continue

            result = await self.dispatcher.dispatch(repos, decoded, record=record)
            stats["replayed"] += 1
            if result.outcome == HandlerOutcome.ORPHANED:
                stats["orphaned"] += 1
            elif result.outcome == HandlerOutcome.APPLIED:
                stats["applied"] += 1

        return stats
