"""
Blockchain services module.

Read-only chain access: RPC clients, log fetching and contract ABIs.
"""

from .chain_client import BlockRef, ChainClient
from .client_registry import ChainClientRegistry
from .log_fetcher import LogFetchResult, fetch_logs


__all__ = [
    "BlockRef",
    "ChainClient",
    "ChainClientRegistry",
    "LogFetchResult",
    "fetch_logs",
]
