"""
Indexer scheduler.

Single poll loop over all chain indexers. Each chain is synced at most
once at a time and no more often than its own poll interval.
"""

import asyncio
import signal
from typing import Any

from loguru import logger

from app.services.chain_indexer.core import ChainIndexerService


class SyncGuard:
    """Per-chain "sync in progress" flags."""

    def __init__(self) -> None:
        self._running: set[int] = set()

    def try_acquire(self, chain_id: int) -> bool:
        if chain_id in self._running:
            return False
        self._running.add(chain_id)
        return True

    def release(self, chain_id: int) -> None:
        self._running.discard(chain_id)

    def is_running(self, chain_id: int) -> bool:
        return chain_id in self._running


class IndexerScheduler:
    """
    Drives sync cycles for all chains.

    Args:
        indexers: One indexer per chain
        concurrent: Sync chains concurrently within a poll round
        stop_event: Shutdown flag (created if None)
    """

    def __init__(
        self,
        indexers: list[ChainIndexerService],
        concurrent: bool = False,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        self.indexers = indexers
        self.concurrent = concurrent
        self.stop_event = stop_event or asyncio.Event()
        self.guard = SyncGuard()
        self._last_run: dict[int, float] = {}

        for indexer in indexers:
            if indexer.stop_event is None:
                indexer.stop_event = self.stop_event

    @property
    def tick_seconds(self) -> float:
        """Loop sleep: the shortest per-chain poll interval."""
        if not self.indexers:
            return 1.0
        return min(i.chain.poll_interval_ms for i in self.indexers) / 1000

    def request_shutdown(self) -> None:
        if not self.stop_event.is_set():
            logger.info("[Scheduler] Shutdown requested, finishing current cycle")
        self.stop_event.set()

    def install_signal_handlers(self) -> None:
        """Set the stop flag on SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_shutdown)

    async def sync_chain(self, indexer: ChainIndexerService) -> dict[str, Any]:
        """
        Run one cycle for a chain unless one is already running.

        Returns:
            Cycle result, or a skipped marker
        """
        chain_id = indexer.chain_id
        if not self.guard.try_acquire(chain_id):
            logger.info(f"[Scheduler] Sync already in progress for {indexer.chain.name}")
            return {"success": True, "chain_id": chain_id, "skipped": True}

        try:
            return await indexer.run_cycle()
        finally:
            self._last_run[chain_id] = asyncio.get_running_loop().time()
            self.guard.release(chain_id)

    def _is_due(self, indexer: ChainIndexerService) -> bool:
        last = self._last_run.get(indexer.chain_id)
        if last is None:
            return True
        interval = indexer.chain.poll_interval_ms / 1000
        return asyncio.get_running_loop().time() - last >= interval

    async def run_once(self, only_due: bool = False) -> list[dict[str, Any]]:
        """
        One round over all chains.

        Args:
            only_due: Skip chains whose poll interval has not elapsed

        Returns:
            Cycle results of the chains that ran
        """
        indexers = [i for i in self.indexers if not only_due or self._is_due(i)]

        if self.concurrent:
            return list(await asyncio.gather(*(self.sync_chain(i) for i in indexers)))

        results = []
        for indexer in indexers:
            if self.stop_event.is_set():
                break
            results.append(await self.sync_chain(indexer))
        return results

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking up early on shutdown."""
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=seconds)
        except TimeoutError:
            pass

    async def run_forever(self) -> None:
        """Initial pass over every chain, then poll until shutdown."""
        logger.info(
            f"[Scheduler] Starting: {len(self.indexers)} chains, "
            f"{'concurrent' if self.concurrent else 'sequential'}, "
            f"tick {self.tick_seconds}s"
        )

        await self.run_once()

        while not self.stop_event.is_set():
            await self._sleep(self.tick_seconds)
            if self.stop_event.is_set():
                break
            await self.run_once(only_due=True)

        logger.info("[Scheduler] Stopped")
