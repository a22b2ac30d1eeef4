"""
Chain Indexer Core Service.

Main service class that combines all per-chain sync functionality.
Inherits from mixins to provide reorg detection, replay and catch-up.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import REPLAY_BATCH_LIMIT
from app.config.settings import ChainConfig, Settings, settings
from app.services.blockchain.chain_client import ChainClient
from app.services.events.decoder import EventDecoder
from app.services.events.dispatcher import EventDispatcher
from app.services.handlers.context import Repositories
from app.utils.datetime_utils import elapsed_seconds, utc_now

from .reorg_mixin import ReorgMixin
from .replay_mixin import ReplayMixin
from .sync_mixin import SyncMixin


@dataclass
class IndexerOptions:
    """Tunables shared by all chains."""

    reorg_tolerance_blocks: int = settings.reorg_tolerance_blocks
    max_blocks_per_query: int = settings.max_blocks_per_query
    max_orphan_attempts: int = settings.max_orphan_attempts
    replay_batch_limit: int = REPLAY_BATCH_LIMIT

    @classmethod
    def from_settings(cls, config: Settings) -> "IndexerOptions":
        return cls(
            reorg_tolerance_blocks=config.reorg_tolerance_blocks,
            max_blocks_per_query=config.max_blocks_per_query,
            max_orphan_attempts=config.max_orphan_attempts,
        )


class ChainIndexerService(ReorgMixin, ReplayMixin, SyncMixin):
    """
    Sync engine of one chain.

    One cycle:
    1. Reorg check against the stored cursor (rollback on mismatch)
    2. Replay of stored but unprocessed events
    3. Catch-up from the cursor to head - confirmations

    Every cycle uses its own session.
    """

    def __init__(
        self,
        chain: ChainConfig,
        client: ChainClient,
        dispatcher: EventDispatcher,
        session_factory: async_sessionmaker[AsyncSession],
        options: IndexerOptions | None = None,
        repositories_factory: Callable[[AsyncSession], Repositories] = Repositories.from_session,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        """
        Initialize indexer.

        Args:
            chain: Chain configuration
            client: RPC client of the chain
            dispatcher: Event dispatcher (shared by all chains)
            session_factory: Async session factory
            options: Sync tunables
            repositories_factory: Builds repositories for a session
            stop_event: Set on shutdown; checked between sub-ranges
        """
        self.chain = chain
        self.client = client
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.options = options or IndexerOptions()
        self.repositories_factory = repositories_factory
        self.stop_event = stop_event
        self.decoder = EventDecoder(chain.chain_id, chain.contracts)

    @property
    def chain_id(self) -> int:
        return self.chain.chain_id

    def stop_requested(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    async def run_cycle(self) -> dict[str, Any]:
        """
        Run one sync cycle.

        Returns:
            Dict with cycle stats including:
            - success: Whether the cycle finished without errors
            - chain_id: Chain ID
            - reorg: Whether a reorg was rolled back
            - replayed: Stored events re-dispatched
            - events: Events dispatched during catch-up
            - from_block / to_block: Catch-up range
            - ranges: Checkpointed sub-ranges
            - errors: Error messages
            - duration: Seconds spent
        """
        started_at = utc_now()
        result: dict[str, Any] = {
            "success": True,
            "chain_id": self.chain_id,
            "reorg": False,
            "replayed": 0,
            "events": 0,
            "from_block": None,
            "to_block": None,
            "ranges": [],
            "errors": [],
        }

        async with self.session_factory() as session:
            repos = self.repositories_factory(session)
            try:
                await self._run_steps(repos, result)
            except Exception as e:
                await repos.rollback()
                logger.error(
                    f"[Sync] {self.chain.name} ({self.chain_id}): cycle aborted: {e}"
                )
                result["errors"].append(str(e))

            if result["errors"]:
                result["success"] = False
                await self._record_error(repos, "; ".join(result["errors"]))

        result["duration"] = elapsed_seconds(started_at)
        if result["success"] and result["ranges"]:
            logger.success(
                f"[Sync] {self.chain.name}: synced to block {result['ranges'][-1][1]} "
                f"({result['events']} events, {result['duration']}s)"
            )
        return result

    async def _run_steps(self, repos: Repositories, result: dict[str, Any]) -> None:
        cursor = await repos.cursors.get_by_chain(self.chain_id)

        reorg = await self.check_reorg(repos, cursor)
        if reorg.get("error"):
            result["errors"].append(reorg["error"])
            return
        if reorg["reorg"]:
            result["reorg"] = True
            result["safe_block"] = reorg["safe_block"]
            result["removed_events"] = reorg["removed_events"]
            cursor = await repos.cursors.get_by_chain(self.chain_id)

        replay = await self.replay_unprocessed(repos)
        result["replayed"] = replay["replayed"]

        if self.stop_requested():
            return

        sync = await self.catch_up(repos, cursor)
        result["events"] = sync["events"]
        result["from_block"] = sync["from_block"]
        result["to_block"] = sync["to_block"]
        result["ranges"] = sync["ranges"]
        if sync["error"]:
            result["errors"].append(sync["error"])

    async def _record_error(self, repos: Repositories, error: str) -> None:
        """Store the failure on the cursor; never raises."""
        try:
            await repos.cursors.record_error(self.chain_id, error)
            await repos.commit()
        except SQLAlchemyError as e:
            await repos.rollback()
            logger.error(f"[Sync] {self.chain.name}: cannot record error: {e}")
