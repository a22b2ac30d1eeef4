"""
Chain Indexer Service.

Per-chain block synchronization with reorg recovery.

Key features:
- Reorg detection against the stored cursor hash, soft rollback
- Replay of stored events whose handler never completed
- Catch-up in bounded sub-ranges with a checkpoint after each
- Scheduler with per-chain in-progress guard and graceful shutdown
"""

from .core import ChainIndexerService, IndexerOptions
from .reorg_mixin import ReorgMixin
from .replay_mixin import ReplayMixin
from .scheduler import IndexerScheduler, SyncGuard
from .sync_mixin import SyncMixin

__all__ = [
    "ChainIndexerService",
    "IndexerOptions",
    "IndexerScheduler",
    "ReorgMixin",
    "ReplayMixin",
    "SyncGuard",
    "SyncMixin",
]
