"""
Indexer Initialization Module.

Initialization logic split into focused modules:
- logging: Logger configuration
- services: Chain clients, handlers and per-chain indexers
- shutdown: Graceful shutdown handler
"""

__all__ = []
